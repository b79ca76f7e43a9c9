"""Proposal renderings.

Key exports:
    proposals_to_csv()       - Flat CSV table of all proposals
    generate_proposal_pdf()  - One-page quote sheet PDF for a proposal
"""
