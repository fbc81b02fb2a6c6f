"""Decode the claim set carried by an identity-provider ID token."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import jwt


class IdentityDecodeError(Exception):
    """The token is not a decodable JWT or lacks the claims sign-in needs."""


@dataclass(frozen=True)
class IdentityClaims:
    name: str
    email: str
    subject: str
    picture: Optional[str] = None


def decode_id_token_claims(token: str) -> IdentityClaims:
    """Extract name/email/sub/picture from the token payload.

    Signature verification belongs to the identity provider; only the
    payload segment is read here.
    """
    try:
        payload = jwt.decode(token or "", options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise IdentityDecodeError(f"Token is not a decodable JWT: {e}") from e

    subject = payload.get("sub")
    if not subject:
        raise IdentityDecodeError("Token payload has no subject")

    picture = payload.get("picture")
    return IdentityClaims(
        name=str(payload.get("name") or ""),
        email=str(payload.get("email") or ""),
        subject=str(subject),
        picture=str(picture) if picture else None,
    )
