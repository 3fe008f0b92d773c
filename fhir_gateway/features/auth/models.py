from beanie import Document, Indexed
from pydantic import EmailStr
from fhir_gateway.features.auth.schemas import Role
from fhir_gateway.shared.models import TimestampMixin


class User(Document, TimestampMixin):
    """User document model."""

    email: Indexed(EmailStr, unique=True)
    password_hash: str
    name: str
    role: Role = Role.CLINICIAN

    class Settings:
        name = "users"
        use_state_management = True

    class Config:
        json_schema_extra = {
            "example": {
                "email": "analyst@example.com",
                "name": "Jane Doe",
                "role": "DATA_SCIENTIST",
            }
        }
