"""
Invoice number formatting.

Numbers look like ``ACME-2025-007``: a four character organization code,
the year, and a zero-padded sequence drawn from ``SequenceService``.
"""

import re

_NON_CODE_CHARS = re.compile(r"[^A-Z0-9]")
_FALLBACK_CODE = "ORG"


def organization_code(organization_name: str | None) -> str:
    """First four letters/digits of the name, upper-cased, padded from "ORG"."""
    if not organization_name or not organization_name.strip():
        return _FALLBACK_CODE
    code = _NON_CODE_CHARS.sub("", organization_name.strip().upper())
    if len(code) >= 4:
        return code[:4]
    if code:
        return code + _FALLBACK_CODE[: 4 - len(code)]
    return _FALLBACK_CODE


def format_invoice_number(org_code: str, year: int, sequence: int, padding: int = 3) -> str:
    return f"{org_code}-{year}-{sequence:0{padding}d}"
