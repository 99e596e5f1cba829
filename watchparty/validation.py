# ============================================
#     Watch Party — Payload Validation
# ============================================

# =====================================================
#   PRIMITIVES
# =====================================================

def is_boolean(value) -> bool:
    """
    Strict bool check: 0/1, "true" and friends are rejected.
    """
    return isinstance(value, bool)


# =====================================================
#   EVENT PAYLOADS
# =====================================================

def is_valid_session_id(session_id) -> bool:
    """
    Session ids are derived from the page URL by the client and are
    otherwise opaque: any string, the empty string included, is a key.
    """
    return isinstance(session_id, str)


def is_valid_message_body(body) -> bool:
    """
    A message body must be a string that is non-empty once
    leading/trailing whitespace is stripped.
    """
    if not isinstance(body, str):
        return False
    return body.strip() != ""


def get_field(data, key):
    """
    Read a field from an event payload that may not be a dict at all
    (clients can send null, a bare string, a list...).
    """
    if not isinstance(data, dict):
        return None
    return data.get(key)
