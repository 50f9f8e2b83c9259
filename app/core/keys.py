"""PULSE — Join-Key Normalization.

Account ids (CIDs) and manager names arrive from independently maintained
sheets. Every join in the engines goes through these helpers so that
"123-456-7890" and "1234567890" land on the same account.
"""

import re
from typing import Iterable, Optional

from app.config import settings

UNKNOWN_MANAGER = "Unknown"
MANAGER_TITLE_SUFFIX = "Strategic Lead"

_NON_DIGITS = re.compile(r"\D")


def normalize_id(raw: Optional[str]) -> str:
    """Strip every non-digit character. Empty string when nothing is left."""
    if not raw:
        return ""
    return _NON_DIGITS.sub("", str(raw))


def normalize_manager(raw: Optional[str]) -> str:
    """Canonical manager display name used as a grouping key."""
    if not raw:
        return ""
    return str(raw).replace(MANAGER_TITLE_SUFFIX, "").strip()


def excluded_managers() -> frozenset[str]:
    return frozenset(settings.excluded_managers)


def is_excluded_manager(name: str, excluded: Optional[Iterable[str]] = None) -> bool:
    """Placeholder / unmanaged labels never count toward any output."""
    pool = excluded_managers() if excluded is None else excluded
    return name in pool


def account_key(cid: Optional[str], account_name: Optional[str]) -> str:
    """Grouping key for performance rows: normalized id, else account name."""
    return normalize_id(cid) or (account_name or "")


def build_manager_index(accounts: Iterable) -> dict[str, str]:
    """Map normalized account id → manager from AccountRecord-like rows.

    Later rows win, matching a top-to-bottom sheet read.
    """
    index: dict[str, str] = {}
    for account in accounts:
        key = normalize_id(account.cid)
        if key:
            index[key] = account.pm
    return index
