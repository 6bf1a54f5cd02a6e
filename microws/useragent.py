"""Detection of user agents whose permessage-deflate support is broken."""

_VERSION_MARKER = " Version/15."
_SAFARI_MARKER = " Safari/"
_U32_MAX = 0xFFFFFFFF


def has_broken_compression(user_agent: str) -> bool:
    """Return True for Safari 15.0 - 15.3, whose compression is broken."""
    start = user_agent.find(_VERSION_MARKER)
    if start == -1:
        return False
    start += len(_VERSION_MARKER)

    end = user_agent.find(" ", start)
    if end == -1:
        return False

    minor = user_agent[start:end]
    if not minor or any(ch not in "0123456789" for ch in minor):
        return False
    minor_version = int(minor)
    if minor_version > _U32_MAX or minor_version > 3:
        return False

    return user_agent.find(_SAFARI_MARKER, end) != -1