"""Helper modules for the waiver portal."""

__all__ = [
    "document_renderer",
    "formatting",
    "locations",
    "signature_capture",
    "terms",
    "terms_gate",
    "validator",
    "waiver_kinds",
]
