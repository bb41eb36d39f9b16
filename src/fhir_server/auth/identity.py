"""
The authenticated principal of a request.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from flask import g

_IDENTITY_ATTRIBUTE = "auth_identity"


@dataclass(frozen=True)
class AuthIdentity:
    """
    Who is making the request and what they may do.

    :param subject: Subject identifier reported by the provider.
    :param scopes: Granted scopes.
    :param claims: Raw introspection or userinfo claims.
    :param auth_type: ``"bearer"`` for introspected tokens, ``"session"`` for
        interactive logins.
    """

    subject: str
    scopes: frozenset[str] = field(default_factory=frozenset)
    claims: Mapping[str, Any] = field(default_factory=dict)
    auth_type: str = "bearer"

    @classmethod
    def from_claims(
        cls, claims: Mapping[str, Any], auth_type: str = "bearer"
    ) -> "AuthIdentity":
        return cls(
            subject=str(claims.get("sub", "")),
            scopes=parse_scopes(claims.get("scope")),
            claims=dict(claims),
            auth_type=auth_type,
        )


def parse_scopes(raw: object) -> frozenset[str]:
    """Split a space separated scope string (or list of scopes) into a set."""
    if isinstance(raw, str):
        return frozenset(raw.split())
    if isinstance(raw, list | tuple | set | frozenset):
        return frozenset(str(scope) for scope in raw)
    return frozenset()


def get_identity() -> AuthIdentity | None:
    identity: AuthIdentity | None = g.get(_IDENTITY_ATTRIBUTE)
    return identity


def set_identity(identity: AuthIdentity) -> None:
    setattr(g, _IDENTITY_ATTRIBUTE, identity)
