"""
Exceptions raised by the services and repositories.

Every error carries the HTTP status it is answered with; ``main.py`` turns
them into JSON responses through a single exception handler::

    if survey.user_id != user.id:
        raise AuthorizationError()
"""

from typing import Any, Dict, List, Optional


class SurveyAppError(Exception):
    """Base exception for all survey app errors"""

    status_code = 500

    def __init__(
        self,
        message: str = "Server Error",
        errors: Optional[Dict[str, List[str]]] = None,
    ):
        self.message = message
        self.errors = errors or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"message": self.message}
        if self.errors:
            content["errors"] = self.errors
        return content


class ValidationError(SurveyAppError):
    """Malformed or missing input, with field-level detail"""

    status_code = 422

    def __init__(
        self,
        errors: Dict[str, List[str]],
        message: str = "The given data was invalid.",
    ):
        super().__init__(message, errors)


class ConflictError(SurveyAppError):
    """A unique key is already taken"""

    status_code = 409

    def __init__(self, field: str, message: str):
        super().__init__(message, {field: [message]})


class AuthenticationError(SurveyAppError):
    """Missing, invalid, expired or revoked bearer token"""

    status_code = 401

    def __init__(self, message: str = "Unauthenticated."):
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    """Login with a password that does not match the stored hash"""

    status_code = 422

    def __init__(self, message: str = "The provided credentials are not correct"):
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class AuthorizationError(SurveyAppError):
    """Authenticated, but not the owner of the resource"""

    status_code = 403

    def __init__(self, message: str = "This action is unauthorized."):
        super().__init__(message)


class NotFoundError(SurveyAppError):
    status_code = 404

    def __init__(self, resource: str = "Resource", resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} not found"
        super().__init__(message)


class ImageError(SurveyAppError):
    """The image payload could not be turned into a file"""

    status_code = 422

    def __init__(self, message: str):
        super().__init__(message, {"image": [message]})


class FormatError(ImageError):
    pass


class DecodeError(ImageError):
    pass
