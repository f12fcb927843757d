"""Merchant identification helpers for transaction narrations."""

from __future__ import annotations

import re
from functools import lru_cache

__all__ = [
    "UNKNOWN_MERCHANT",
    "extract_merchant_id",
    "merchant_display_name",
]

UNKNOWN_MERCHANT = "Unknown Merchant"

_TOKEN_SPLIT = re.compile(r"[\s/]+")
_NON_WORD = re.compile(r"[^a-zA-Z0-9\s\-]")

_UPI_PATTERNS = (
    re.compile(r"UPI/(?:DR|CR)/[^/]+/([^/]+)/[^/]+", re.IGNORECASE),
    re.compile(r"UPI-([^-]+)-\d+", re.IGNORECASE),
    re.compile(r"UPI/([^/]+)/[^/]+", re.IGNORECASE),
    re.compile(r"UPI\s+([A-Z][A-Z0-9\s]+?)\s+\d+", re.IGNORECASE),
)
_TRANSFER_PATTERNS = (
    re.compile(r"(?:NEFT|IMPS)-([^-]+)-[^-]+", re.IGNORECASE),
    re.compile(r"(?:NEFT|IMPS)/[^/]+/([^/]+)", re.IGNORECASE),
)

_STOP_WORDS = frozenset(
    {
        "UPI", "NEFT", "IMPS", "ATM", "POS", "PAYMENT", "TRANSFER", "TO", "FROM",
        "REF", "REFERENCE", "NO", "NUMBER", "DR", "CR", "DEBIT", "CREDIT",
        "TRANSACTION", "TXN", "ID",
    }
)


def extract_merchant_id(details: str) -> str:
    """Return a coarse merchant identifier for limit and recurring matching.

    This is a heuristic, not a precise merchant match: the identifier is the
    first whitespace- or slash-delimited token of the narration, lower-cased.
    Narrations sharing a leading token (``UPI/...``) collapse into one id.
    """

    if not details:
        return ""
    tokens = [token for token in _TOKEN_SPLIT.split(details.strip()) if token]
    return tokens[0].lower() if tokens else ""


def _clean_name(raw_name: str) -> str:
    words = [word for word in _NON_WORD.sub(" ", raw_name).split() if word]
    words = [word for word in words if word.upper() not in _STOP_WORDS]
    return " ".join(word.capitalize() for word in words).strip()


def _match_first(patterns: tuple[re.Pattern[str], ...], details: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(details)
        if match and match.group(1):
            cleaned = _clean_name(match.group(1))
            if cleaned:
                return cleaned
    return None


@lru_cache(maxsize=1024)
def merchant_display_name(details: str) -> str:
    """Create a readable merchant label from a raw bank narration."""

    if not details or not details.strip():
        return UNKNOWN_MERCHANT

    upper = details.upper()
    if "UPI" in upper:
        merchant = _match_first(_UPI_PATTERNS, details)
        if merchant:
            return merchant

    if "NEFT" in upper or "IMPS" in upper:
        merchant = _match_first(_TRANSFER_PATTERNS, details)
        if merchant:
            return merchant

    words = [word for word in re.sub(r"[^a-zA-Z0-9\s]", " ", details).split() if len(word) > 2]
    words = [word for word in words if word.upper() not in _STOP_WORDS]
    if not words:
        return UNKNOWN_MERCHANT
    return " ".join(word.capitalize() for word in words[:3])
