"""
M77 AG API routes.

POST   /api/proposals              - Submit new proposal
GET    /api/proposals              - All proposals (X-Admin-Password required)
GET    /api/proposals/<id>         - Single proposal
GET    /api/proposals/<id>/pdf     - Quote sheet PDF
PATCH  /api/proposals/<id>/status  - Update status (approve/reject/complete)
DELETE /api/proposals/<id>         - Delete proposal and its service lines
GET    /api/analytics              - Summary statistics
GET    /api/export/csv             - CSV download
GET    /api/integrated/search      - Search across registered databases
GET    /api/health                 - Row counts per database
"""
import io
import logging

from flask import Blueprint, request, jsonify, Response, send_file, current_app

from ..core.auth import admin_required
from ..core.errors import StoreError, ProposalNotFound
from ..core.router import federated_search
from ..forms.csv_export import proposals_to_csv, EXPORT_FILENAME
from ..forms.proposal_pdf import generate_proposal_pdf

log = logging.getLogger("m77ag.api")

bp = Blueprint("api", __name__, url_prefix="/api")


def _svc(name):
    return current_app.extensions["m77ag"][name]


@bp.errorhandler(StoreError)
def _store_error(e):
    log.error("%s %s failed: %s", request.method, request.path, e)
    return jsonify({"error": str(e)}), 500


@bp.errorhandler(ProposalNotFound)
def _not_found(e):
    return jsonify({"error": "Proposal not found"}), 404


# ═══════════════════════════════════════════════════════════════════════
# Proposals
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/proposals", methods=["POST"])
def submit_proposal():
    data = request.get_json(silent=True) or {}
    proposal_id = _svc("store").create(data)
    return jsonify({
        "success": True,
        "id": proposal_id,
        "message": "Proposal submitted successfully",
    })


@bp.route("/proposals", methods=["GET"])
@admin_required
def list_proposals():
    return jsonify(_svc("store").list_all())


@bp.route("/proposals/<int:proposal_id>", methods=["GET"])
def get_proposal(proposal_id):
    return jsonify(_svc("store").get(proposal_id))


@bp.route("/proposals/<int:proposal_id>/pdf", methods=["GET"])
def proposal_pdf(proposal_id):
    proposal = _svc("store").get(proposal_id)
    buf = io.BytesIO()
    generate_proposal_pdf(proposal, buf)
    buf.seek(0)
    return send_file(buf, mimetype="application/pdf", as_attachment=False,
                     download_name=f"proposal-{proposal_id}.pdf")


@bp.route("/proposals/<int:proposal_id>/status", methods=["PATCH"])
def update_status(proposal_id):
    data = request.get_json(silent=True) or {}
    changes = _svc("store").update_status(proposal_id, data.get("status"), data.get("notes"))
    return jsonify({"success": True, "changes": changes})


@bp.route("/proposals/<int:proposal_id>", methods=["DELETE"])
def delete_proposal(proposal_id):
    deleted = _svc("store").delete(proposal_id)
    return jsonify({"success": True, "deleted": deleted})


# ═══════════════════════════════════════════════════════════════════════
# Reporting
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/analytics", methods=["GET"])
def analytics():
    return jsonify(_svc("analytics").summary())


@bp.route("/export/csv", methods=["GET"])
def export_csv():
    content = proposals_to_csv(_svc("store").list_all())
    return Response(content, mimetype="text/csv", headers={
        "Content-Disposition": f"attachment; filename={EXPORT_FILENAME}",
    })


@bp.route("/integrated/search", methods=["GET"])
def integrated_search():
    term = request.args.get("query", "")
    return jsonify(federated_search(_svc("router"), term))


@bp.route("/health", methods=["GET"])
def health():
    router = _svc("router")
    stats = router.stats()
    farming = stats.get("farming") or {}
    return jsonify({
        "ok": stats.get("farming") is not None,
        "databases": router.names(),
        "proposals": farming.get("proposals", 0),
        "services": farming.get("proposal_services", 0),
    })
