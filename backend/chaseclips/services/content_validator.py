"""ChaseRP content classification by keyword matching over clip and VOD titles."""

from typing import Iterable

# Exact substrings, matched case-insensitively; not word-boundary aware
CHASERP_TERMS = ("chaserp", "chase rp", "chase roleplay", "chaserpg")


def is_relevant(
    primary_title: str | None,
    secondary_title: str | None = None,
    terms: Iterable[str] = CHASERP_TERMS,
) -> bool:
    """Return True if either title mentions the server.

    The titles are joined with a single space, so a variant may straddle
    them: "Late night Chase" + "RP with the boys" matches "chase rp".
    """
    combined = f"{primary_title or ''} {secondary_title or ''}".lower()
    return any(term.lower() in combined for term in terms)
