"""
CSV export of the proposal list.

Text columns (operation, email, phone, total) are wrapped in double quotes so
embedded commas survive. Embedded double quotes are NOT escaped, so a value
containing '"' produces a malformed line. Known limitation, kept for
compatibility with the admin spreadsheet import.
"""

CSV_HEADERS = ["ID", "Timestamp", "Operation", "Fields", "Acres", "Crop",
               "Start Date", "End Date", "Email", "Phone", "Total", "Status"]

EXPORT_FILENAME = "proposals.csv"


def _plain(val) -> str:
    return "" if val is None else str(val)


def _quoted(val) -> str:
    return f'"{_plain(val)}"'


def proposal_csv_row(p: dict) -> str:
    return ",".join([
        _plain(p.get("id")),
        _plain(p.get("timestamp")),
        _quoted(p.get("operation_name")),
        _plain(p.get("fields")),
        _plain(p.get("acres")),
        _plain(p.get("crop_type")),
        _plain(p.get("start_date")),
        _plain(p.get("finish_date")),
        _quoted(p.get("email")),
        _quoted(p.get("phone") or ""),
        _quoted(p.get("total")),
        _plain(p.get("status")),
    ])


def proposals_to_csv(proposals: list) -> str:
    """Header line + one line per proposal, in the order given."""
    lines = [",".join(CSV_HEADERS)]
    lines.extend(proposal_csv_row(p) for p in proposals)
    return "\n".join(lines)
