from typing import Any, List, Optional

from fastapi import HTTPException, status


class CredentialsException(HTTPException):
    """Exception for invalid credentials."""

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidCredentialsException(CredentialsException):
    """Unknown email or wrong password. Both cases share one message."""

    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(detail=detail)


class TokenExpiredException(CredentialsException):
    """Exception for a correctly signed token past its expiry."""

    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail=detail)


class InvalidTokenException(CredentialsException):
    """Exception for malformed, tampered or wrong-type tokens."""

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail=detail)


class ForbiddenException(HTTPException):
    """Exception for forbidden access."""

    def __init__(self, detail: str = "Forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class AlreadyExistsException(HTTPException):
    """Exception for resource conflict."""

    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


class MissingReferenceException(HTTPException):
    """Exception for a resource built without its owning patient reference."""

    def __init__(self, detail: str = "Patient reference is required"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


# ============== FHIR Gateway ==============

class FhirGatewayException(HTTPException):
    """Base class for errors raised while talking to the FHIR store."""


class NotFoundException(FhirGatewayException):
    """Exception for resource not found."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class ValidationFailedException(FhirGatewayException):
    """Exception for a resource rejected by local FHIR validation."""

    def __init__(self, messages: List[Any], detail: str = "FHIR resource validation failed"):
        self.messages = messages
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": detail, "errors": messages},
        )


class UpstreamRejectedException(FhirGatewayException):
    """Exception for a non-2xx answer from the FHIR store."""

    def __init__(
        self,
        detail: str = "FHIR store rejected the request",
        upstream_status: Optional[int] = None,
        upstream_body: Any = None,
    ):
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": detail,
                "upstream_status": upstream_status,
                "upstream_body": upstream_body,
            },
        )


class UpstreamUnreachableException(FhirGatewayException):
    """Exception for a FHIR call that got no response at all."""

    def __init__(self, detail: str = "FHIR store is unreachable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
        )
