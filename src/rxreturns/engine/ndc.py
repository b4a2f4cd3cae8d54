"""NDC (National Drug Code) normalization and formatting."""

import re

_NON_DIGIT = re.compile(r"\D")
_FORMATTED = re.compile(r"^\d{5}-\d{4}-\d{2,3}$")


def normalize_ndc(raw: str | None) -> str:
    """Digit-only key used for every NDC comparison."""
    return _NON_DIGIT.sub("", str(raw or ""))


def format_ndc(raw: str) -> str:
    """Format 10/11 digit NDCs as XXXXX-XXXX-XX; anything else is returned unchanged.

    10-digit codes are split in place, not zero-padded to 11 digits, so
    ``0187-5115-60`` and ``00187-5115-60`` stay distinct keys.
    """
    digits = normalize_ndc(raw)
    if len(digits) in (10, 11):
        return f"{digits[:5]}-{digits[5:9]}-{digits[9:]}"
    return raw


def is_valid_ndc_format(ndc: str) -> bool:
    return bool(_FORMATTED.match(ndc or ""))
