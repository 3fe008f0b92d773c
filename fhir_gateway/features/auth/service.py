from fhir_gateway.features.auth.repository import UserRepository
from fhir_gateway.features.auth.schemas import RegisterRequest, StoredUser, TokenPair, UserResponse
from fhir_gateway.core.security import (
    REFRESH_TOKEN_TYPE,
    TokenManager,
    get_password_hash,
    verify_password,
)
from fhir_gateway.shared.exceptions import (
    AlreadyExistsException,
    InvalidCredentialsException,
    InvalidTokenException,
)
from fhir_gateway.core.logging import logger


class AuthService:
    """Authentication service for handling auth business logic."""

    def __init__(self, users: UserRepository, tokens: TokenManager):
        self.users = users
        self.tokens = tokens

    def _issue(self, user: StoredUser) -> TokenPair:
        return self.tokens.issue_tokens(user.id, user.email, user.role)

    async def register(self, request: RegisterRequest) -> UserResponse:
        """
        Register a new user account.

        Returns:
            UserResponse: the stored user, without the password hash
        """
        existing_user = await self.users.find_by_email(request.email)
        if existing_user:
            raise AlreadyExistsException("User already exists")

        user = await self.users.insert(
            email=request.email,
            name=request.name,
            password_hash=get_password_hash(request.password),
            role=request.role,
        )
        logger.info(f"Registered user {user.id} with role {user.role.value}")

        return UserResponse.from_stored(user)

    async def authenticate(self, email: str, password: str) -> TokenPair:
        """
        Authenticate user and return an access/refresh token pair.

        Unknown email and wrong password raise the same exception.
        """
        user = await self.users.find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise InvalidCredentialsException()

        return self._issue(user)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new token pair.

        The new claims are built from the current user record, so a role
        change since login is picked up here.
        """
        claims = self.tokens.decode(refresh_token, expected_type=REFRESH_TOKEN_TYPE)

        user = await self.users.find_by_id(claims.sub)
        if user is None:
            raise InvalidTokenException("User not found")

        return self._issue(user)
