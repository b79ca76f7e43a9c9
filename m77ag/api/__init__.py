"""HTTP routes (Flask Blueprint)."""
