"""
Resource identifiers.

Identifiers are BSON ObjectIds rendered as 24 lower-case hex characters. They are
URL-safe and sort by creation time.
"""

from bson import ObjectId


def new_id() -> str:
    """Return a fresh, globally unique resource identifier."""
    return str(ObjectId())


def is_valid_id(value: object) -> bool:
    """
    Check whether ``value`` has the identifier format produced by :func:`new_id`.

    :param value: Candidate identifier, usually taken from the route.
    :returns: ``True`` if ``value`` is a 24 character hex string.
    """
    return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)


def normalize_id(value: str) -> str:
    """Render a valid identifier, in any case, the way :func:`new_id` does."""
    return str(ObjectId(value))
