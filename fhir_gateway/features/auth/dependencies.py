from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Callable
from fhir_gateway.features.auth.repository import UserRepository
from fhir_gateway.features.auth.schemas import AccessClaims, Role
from fhir_gateway.features.auth.service import AuthService
from fhir_gateway.core.security import ACCESS_TOKEN_TYPE, TokenManager
from fhir_gateway.core.logging import logger
from fhir_gateway.shared.exceptions import ForbiddenException


# HTTP Bearer security scheme
security = HTTPBearer()


def get_token_manager() -> TokenManager:
    """Dependency providing the token manager."""
    return TokenManager()


def get_auth_service(tokens: TokenManager = Depends(get_token_manager)) -> AuthService:
    """Dependency providing the auth service over the MongoDB user store."""
    return AuthService(UserRepository(), tokens)


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    tokens: TokenManager = Depends(get_token_manager),
) -> AccessClaims:
    """
    Dependency to get the claims of the authenticated caller.

    Args:
        credentials: HTTP Bearer credentials

    Returns:
        AccessClaims: Decoded access token

    Raises:
        TokenExpiredException: If the access token has expired
        InvalidTokenException: If the token is not a valid access token
    """
    return tokens.decode(credentials.credentials, expected_type=ACCESS_TOKEN_TYPE)


def require_role(claims: AccessClaims, *roles: Role) -> AccessClaims:
    """Return the claims if they hold one of ``roles``, raise ForbiddenException otherwise."""
    if claims.role not in roles:
        logger.warning(f"User {claims.sub} with role {claims.role.value} denied, requires {[r.value for r in roles]}")
        raise ForbiddenException("Insufficient role for this operation")
    return claims


def require_roles(*roles: Role) -> Callable:
    """Build a dependency that admits only callers holding one of ``roles``."""

    async def dependency(claims: AccessClaims = Depends(get_current_claims)) -> AccessClaims:
        return require_role(claims, *roles)

    return dependency
