"""
Authentication Service

Verifies identity-provider bearer tokens and checks the admin allow-list.
No session is kept: every protected request is verified again.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from jose import JWTError, jwt

from storefront.config import Settings

logger = logging.getLogger(__name__)


class InvalidTokenError(Exception):
    """The bearer token could not be verified."""


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: Optional[str]


class IdentityVerifier:
    """Checks tokens issued by the identity provider."""

    def __init__(self, settings: Settings):
        self.key = settings.auth_jwt_key
        self.algorithms = settings.jwt_algorithms
        self.email_claim = settings.auth_email_claim
        self.api_url = (settings.auth_api_url or "").rstrip("/")
        self.secret_key = settings.auth_secret_key
        self.admin_emails = settings.admin_email_list

    def decode_token(self, token: str) -> dict:
        """Decode and validate a JWT token."""
        if not self.key:
            raise InvalidTokenError("Identity provider key is not configured")
        try:
            return jwt.decode(
                token,
                self.key,
                algorithms=self.algorithms,
                options={"verify_aud": False},
            )
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e

    async def verify(self, token: str) -> Identity:
        """Verify a token and resolve the caller's email."""
        payload = self.decode_token(token)

        sub = payload.get("sub")
        if not sub:
            raise InvalidTokenError("Token has no subject")

        email = payload.get(self.email_claim)
        if not email and self.api_url and self.secret_key:
            email = await self.fetch_primary_email(str(sub))

        return Identity(user_id=str(sub), email=email.lower() if email else None)

    async def fetch_primary_email(self, user_id: str) -> Optional[str]:
        """Look up a user's primary email address from the identity provider."""
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                f"{self.api_url}/users/{user_id}",
                headers={"Authorization": f"Bearer {self.secret_key}"},
            )
        response.raise_for_status()
        data = response.json()

        addresses = data.get("email_addresses") or []
        primary_id = data.get("primary_email_address_id")
        for address in addresses:
            if address.get("id") == primary_id:
                return address.get("email_address")
        if addresses:
            return addresses[0].get("email_address")
        return None

    def is_admin(self, identity: Identity) -> bool:
        """Check the caller's email against the admin allow-list."""
        if not identity.email:
            return False
        return identity.email.lower() in self.admin_emails
