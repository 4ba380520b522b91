"""
=============================================================================
PATH IDENTIFIER EXTRACTION
=============================================================================

Item routes are registered as PREFIX routes ("/api/v1/items/"), so the
router hands the handler the whole path and the handler has to pull the id
off the end itself. Every id-taking handler goes through extract_id(); no
handler slices the path on its own.

    Path:    /api/v1/items/42
             └──── prefix ───┘└┘
                              remainder "42" → 42

    /api/v1/items/42       → 42
    /api/v1/items/007      → 7
    /api/v1/items/         → None   (empty remainder)
    /api/v1/items/abc      → None   (not digits)
    /api/v1/items/-3       → None   (sign is not a digit)
    /api/v1/items/ 4       → None   (no surrounding whitespace)
    /api/v1/items/4/extra  → None   (trailing characters)
    /api/v1/items/99999999999999999999 → None  (beyond MAX_ITEM_ID)
    /api/v2/items/42       → None   (prefix mismatch)

=============================================================================
"""

import re
from typing import Optional

# Ids are handed out from 1 upward and must fit a signed 32-bit integer.
MAX_ITEM_ID = 2**31 - 1
_MAX_ID_DIGITS = len(str(MAX_ITEM_ID))

# ASCII digits only. str.isdigit() would also accept "²" and other Unicode
# digits that int() then rejects or misreads.
_DIGITS = re.compile(r"[0-9]+")


def extract_id(path: str, prefix: str) -> Optional[int]:
    """
    Parse the base-10 identifier that follows ``prefix`` in ``path``.

    Args:
        path: Request path, already stripped of its query string.
        prefix: Literal prefix the id must follow, separator included
                (e.g. "/api/v1/items/").

    Returns:
        The identifier, or None if the path is not ``prefix`` followed by
        nothing but ASCII digits whose value is at most MAX_ITEM_ID.
    """
    if not path.startswith(prefix):
        return None

    remainder = path[len(prefix):]
    if not _DIGITS.fullmatch(remainder):
        return None

    # Reject absurdly long digit strings before int() sees them.
    if len(remainder.lstrip("0")) > _MAX_ID_DIGITS:
        return None

    item_id = int(remainder)
    if item_id > MAX_ITEM_ID:
        return None
    return item_id
