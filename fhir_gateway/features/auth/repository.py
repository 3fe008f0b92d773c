"""User account storage behind three keyed lookups."""

from typing import Optional
from beanie import PydanticObjectId
from bson.errors import InvalidId
from fhir_gateway.features.auth.models import User
from fhir_gateway.features.auth.schemas import Role, StoredUser


class UserRepository:
    """MongoDB-backed user store."""

    @staticmethod
    def _to_stored(user: User) -> StoredUser:
        return StoredUser(
            id=str(user.id),
            email=user.email,
            name=user.name,
            role=user.role,
            password_hash=user.password_hash,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    async def find_by_email(self, email: str) -> Optional[StoredUser]:
        """Get user by email."""
        user = await User.find_one(User.email == email)
        return self._to_stored(user) if user else None

    async def find_by_id(self, user_id: str) -> Optional[StoredUser]:
        """Get user by ID. Malformed ids are treated as unknown."""
        try:
            object_id = PydanticObjectId(user_id)
        except (InvalidId, TypeError):
            return None
        user = await User.get(object_id)
        return self._to_stored(user) if user else None

    async def insert(self, email: str, name: str, password_hash: str, role: Role) -> StoredUser:
        """Insert a new user and return the stored copy."""
        user = User(
            email=email,
            name=name,
            password_hash=password_hash,
            role=role,
        )
        await user.insert()
        return self._to_stored(user)
