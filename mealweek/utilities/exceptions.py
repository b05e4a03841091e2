from typing import Any, Mapping, Optional


class MealPlannerError(Exception):
    """Base for errors the API layer turns into JSON responses.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context
        code: machine-readable error code (defaults to the class name)
        http_status: suggested HTTP status code for handlers
    """

    http_status = 500

    def __init__(self, message: str = "Operation failed", details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code or self.__class__.__name__

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"message": self.message, "code": self.code}
        if self.details:
            payload["details"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


class AuthRequired(MealPlannerError):
    """No authenticated session was supplied by the auth provider."""

    http_status = 401

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message, **kwargs)


class PersistenceError(MealPlannerError):
    """A write could not be persisted.

    Raised when neither store accepted the write (the underlying error is kept
    as ``__cause__``), or when the stored collection is unreadable and a write
    would overwrite it.
    """

    http_status = 503


class MealNotFound(MealPlannerError):
    http_status = 404

    def __init__(self, meal_id: str):
        super().__init__("Meal not found", details={"meal_id": meal_id})
        self.meal_id = meal_id


class RemoteStoreError(MealPlannerError):
    """The remote key-value store answered with an error payload."""

    http_status = 502
