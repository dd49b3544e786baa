"""
Bearer token authentication for the stream API.

The authenticator is built once at startup and handed to the application
factory; route dependencies read it from ``app.state``.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from .models import ErrorCode
from ..config.settings import AuthConfig

logger = logging.getLogger(__name__)


class StreamAuthenticator:
    """Resolves the requesting user's ID from a bearer token."""

    def __init__(self, config: AuthConfig):
        """Initialize authenticator.

        Args:
            config: Authentication settings; without a JWT secret every
                request resolves to the development user
        """
        self.config = config
        if config.development_mode:
            logger.warning(
                f"AUTH_JWT_SECRET not set, all requests resolve to '{config.dev_user_id}'"
            )

    def authenticate(self, token: Optional[str]) -> str:
        """Return the user ID for a bearer token.

        Args:
            token: Raw bearer token, or None when no Authorization header was sent

        Returns:
            The authenticated user ID

        Raises:
            HTTPException: 401 if the token is missing, invalid or expired
        """
        if self.config.development_mode:
            return self.config.dev_user_id

        if not token:
            raise HTTPException(
                status_code=401,
                detail={"code": ErrorCode.UNAUTHORIZED, "message": "Authorization header is required"},
            )

        try:
            claims = jwt.decode(
                token, self.config.jwt_secret, algorithms=[self.config.jwt_algorithm]
            )
        except ExpiredSignatureError:
            raise HTTPException(
                status_code=401,
                detail={"code": ErrorCode.UNAUTHORIZED, "message": "Token has expired"},
            )
        except JWTError as e:
            logger.info(f"Rejected bearer token: {e}")
            raise HTTPException(
                status_code=401,
                detail={"code": ErrorCode.UNAUTHORIZED, "message": "Invalid or expired token"},
            )

        user_id = claims.get("sub")
        if not user_id:
            raise HTTPException(
                status_code=401,
                detail={"code": ErrorCode.UNAUTHORIZED, "message": "Token missing user identifier"},
            )
        return user_id

    def create_token(self, user_id: str, **claims) -> str:
        """Sign a token for ``user_id`` (used by local tooling and tests)."""
        if self.config.development_mode:
            raise RuntimeError("Cannot sign tokens without AUTH_JWT_SECRET")
        payload = {"sub": user_id, **claims}
        return jwt.encode(payload, self.config.jwt_secret, algorithm=self.config.jwt_algorithm)


# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """FastAPI dependency returning the authenticated user ID."""
    authenticator: StreamAuthenticator = request.app.state.authenticator
    return authenticator.authenticate(credentials.credentials if credentials else None)
