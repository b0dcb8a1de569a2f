"""
Name: Bearer Authentication Dependencies

Responsibilities:
  - Extract the access token from `Authorization: Bearer <token>`
  - Validate it with the token service and expose the principal username
  - Log rejected tokens with their claimed subject (diagnostics only)
  - Bind the principal into the log context and request.state

Collaborators:
  - identity.tokens.TokenService
  - container.get_token_service
  - error_responses.unauthorized
  - context.bind_principal, middleware (reads request.state.username)
"""

from typing import Callable

from fastapi import Depends, Header, Request

from ..container import get_token_service
from ..context import bind_principal
from ..error_responses import unauthorized
from ..logger import logger
from .tokens import TokenService


def extract_bearer_token(authorization: str | None) -> str | None:
    """R: Extract token from `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def require_username() -> Callable:
    """Dependency: requires a valid access token, returns its subject."""

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
        tokens: TokenService = Depends(get_token_service),
    ) -> str:
        token = extract_bearer_token(authorization)
        if not token:
            raise unauthorized("Missing bearer token.")

        username = tokens.validate(token)
        if username is None:
            logger.warning(
                "Rejected access token",
                extra={"claimed_subject": tokens.extract_subject(token)},
            )
            raise unauthorized("Invalid or expired token.")

        request.state.username = username
        bind_principal(username)
        return username

    return dependency
