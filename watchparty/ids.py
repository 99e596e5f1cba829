# ============================================
#     Watch Party — Identifier Helpers
# ============================================

import secrets

from watchparty.config import ID_BYTES, ID_LENGTH


def make_id() -> str:
    """
    Random id with 64 bits of entropy, rendered as 16 lowercase hex chars.
    No uniqueness guarantee: callers re-roll against their registry.
    """
    return secrets.token_hex(ID_BYTES)


def is_valid_id(value) -> bool:
    return isinstance(value, str) and len(value) == ID_LENGTH
