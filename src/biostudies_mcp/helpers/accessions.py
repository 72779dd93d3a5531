import re
from typing import Any, NamedTuple

from biostudies_mcp.constants import ACCESSION_PATTERNS

_COMPILED_PATTERNS: dict[str, re.Pattern[str]] = {
    family: re.compile(pattern, re.IGNORECASE | re.ASCII)
    for family, pattern in ACCESSION_PATTERNS.items()
}


class AccessionFormat(NamedTuple):
    """Outcome of matching a string against the known accession families."""

    is_valid: bool
    family: str | None = None


def classify(accno: Any) -> AccessionFormat:
    """Match accno against every family; never raises."""
    if not accno or not isinstance(accno, str):
        return AccessionFormat(is_valid=False)
    for family, pattern in _COMPILED_PATTERNS.items():
        if pattern.fullmatch(accno):
            return AccessionFormat(is_valid=True, family=family)
    return AccessionFormat(is_valid=False)


def is_valid_accession(accno: Any) -> bool:
    return classify(accno).is_valid


def canonicalize(accno: str) -> str:
    # Display only. Matching is case-insensitive and runs on the raw input.
    if not accno:
        return accno
    return accno.upper()
