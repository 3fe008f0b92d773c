from datetime import datetime, timedelta
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from fhir_gateway.config import settings
from fhir_gateway.features.auth.schemas import AccessClaims, Role, TokenPair
from fhir_gateway.shared.exceptions import InvalidTokenException, TokenExpiredException


ACCESS_TOKEN_EXPIRE = timedelta(hours=1)
REFRESH_TOKEN_EXPIRE = timedelta(days=7)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


class TokenManager:
    """Issues and verifies signed access/refresh tokens. Holds no state besides the key."""

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret_key = secret_key or settings.JWT_SECRET_KEY
        self.algorithm = algorithm or settings.JWT_ALGORITHM

    def create_token(self, user_id: str, email: str, role: Role, token_type: str, expires_delta: timedelta) -> str:
        """Create a signed JWT for the given identity."""
        to_encode = {
            "sub": user_id,
            "email": email,
            "role": role.value if isinstance(role, Role) else role,
            "type": token_type,
            "exp": datetime.utcnow() + expires_delta,
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def issue_tokens(self, user_id: str, email: str, role: Role) -> TokenPair:
        """Create a fresh access/refresh pair."""
        return TokenPair(
            access_token=self.create_token(user_id, email, role, ACCESS_TOKEN_TYPE, ACCESS_TOKEN_EXPIRE),
            refresh_token=self.create_token(user_id, email, role, REFRESH_TOKEN_TYPE, REFRESH_TOKEN_EXPIRE),
        )

    def decode(self, token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> AccessClaims:
        """
        Decode and verify a JWT.

        Raises:
            TokenExpiredException: signature is valid but the token is past its expiry
            InvalidTokenException: anything else wrong with the token
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredException()
        except JWTError:
            raise InvalidTokenException()

        if payload.get("type") != expected_type:
            raise InvalidTokenException(f"Expected a {expected_type} token")

        try:
            return AccessClaims.model_validate(payload)
        except ValidationError:
            raise InvalidTokenException("Token is missing required claims")
