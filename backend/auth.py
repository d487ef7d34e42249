"""
Bearer token checks against the external identity provider.
The provider's user endpoint answers 200 with the user's JSON for a valid token.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Credential missing, malformed, or rejected by the identity provider."""


class IdentityProviderUnavailable(IdentityError):
    pass


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """
    Return the token from an `Authorization: Bearer <token>` header.
    None when the header is absent; IdentityError when it is present but not a bearer token.
    """
    if authorization is None or not authorization.strip():
        return None
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise IdentityError("Malformed Authorization header")
    return token


class IdentityVerifier:
    def __init__(
        self,
        user_url: str,
        *,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.user_url = user_url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def verify(self, token: str) -> str:
        """Return the user id behind `token`."""
        headers = {"Authorization": f"Bearer {token}"}
        if self._api_key:
            headers["apikey"] = self._api_key

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.get(self.user_url, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("identity provider unreachable: %s", e)
            raise IdentityProviderUnavailable("Identity provider unreachable") from e

        if resp.status_code != 200:
            raise IdentityError(f"Token rejected ({resp.status_code})")

        try:
            data = resp.json()
        except ValueError as e:
            raise IdentityError("Unexpected identity provider response") from e

        user_id = (data.get("id") or data.get("sub")) if isinstance(data, dict) else None
        if not user_id:
            raise IdentityError("Identity provider returned no user id")
        return str(user_id)
