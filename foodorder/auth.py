"""
Bearer-token authentication.

Two layers, used as FastAPI dependencies:
    - ``verify_token``: the request carries a valid access token
    - ``get_current_user``: ...and its subject is a registered user

Token verification follows ENV_MODE: development accepts HS256 tokens
signed with ``JWT_SECRET``; staging/production verify RS256 tokens against
the identity provider's JWKS.
"""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from foodorder.core.config import Settings, get_settings
from foodorder.core.exceptions import Unauthorized
from foodorder.database import get_db
from foodorder.models import User
from foodorder.services.users import get_user_by_auth0_id

logger = logging.getLogger(__name__)

ACCESS_TOKEN_EXPIRE_MINUTES = 60

bearer_scheme = HTTPBearer(auto_error=False)


class TokenVerifier:
    """Decode and validate access tokens for the configured environment."""

    def __init__(self, settings: Settings):
        self.audience = settings.auth0_audience
        self.secret = settings.jwt_secret
        self.use_jwks = settings.use_real_services
        self._jwks_client = None
        self.issuer = None

        if settings.auth0_issuer_base_url:
            self.issuer = settings.auth0_issuer_base_url.rstrip("/") + "/"

        if self.use_jwks:
            if not self.issuer:
                raise ValueError(
                    "AUTH0_ISSUER_BASE_URL is required outside development mode."
                )
            self._jwks_client = jwt.PyJWKClient(f"{self.issuer}.well-known/jwks.json")

    def verify(self, token: str) -> dict[str, Any]:
        """
        Return the token claims.

        Raises:
            jwt.PyJWTError: signature, expiry, audience or issuer mismatch
        """
        options = {"require": ["sub"]}
        if not self.audience:
            options["verify_aud"] = False

        if self.use_jwks:
            signing_key = self._jwks_client.get_signing_key_from_jwt(token)
            return jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.audience,
                issuer=self.issuer,
                options=options,
            )

        return jwt.decode(
            token,
            self.secret,
            algorithms=["HS256"],
            audience=self.audience,
            options=options,
        )


@lru_cache()
def get_token_verifier() -> TokenVerifier:
    return TokenVerifier(get_settings())


def create_access_token(
    subject: str,
    expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
    settings: Optional[Settings] = None,
) -> str:
    """Issue an HS256 token for local development and tests."""
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    claims = {
        "sub": subject,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    if settings.auth0_audience:
        claims["aud"] = settings.auth0_audience
    return jwt.encode(claims, settings.jwt_secret, algorithm="HS256")


async def verify_token(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> dict[str, Any]:
    if creds is None or creds.scheme.lower() != "bearer":
        raise Unauthorized()

    try:
        return verifier.verify(creds.credentials)
    except jwt.PyJWTError as e:
        logger.info(f"Rejected access token: {e}")
        raise Unauthorized("Invalid token")


async def get_current_user(
    claims: dict[str, Any] = Depends(verify_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await get_user_by_auth0_id(db, claims["sub"])
    if user is None:
        raise Unauthorized()
    return user
