"""Domain errors. Each class carries the HTTP status it maps to."""

from fastapi import status


class DomainError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ── 404 ────────────────────────────────────────────
class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class CategoryNotFound(NotFoundError):
    default_message = "Category not found"


class ParentNotFound(NotFoundError):
    default_message = "Parent category not found"


class CommissionRuleNotFound(NotFoundError):
    default_message = "Commission rule not found"


class UserNotFound(NotFoundError):
    default_message = "User not found"


# ── 409 ────────────────────────────────────────────
class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class DuplicateNameError(ConflictError):
    default_message = "Name already in use"


class DuplicateCategoryName(DuplicateNameError):
    default_message = "Category with this name already exists"


class DuplicateSubcategoryName(DuplicateNameError):
    default_message = "Subcategory with this name already exists under this parent"


class DuplicateEmail(ConflictError):
    default_message = "Email already registered"


# ── 400 ────────────────────────────────────────────
class InvalidReferenceError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid reference"


class InvalidId(InvalidReferenceError):
    default_message = "Invalid id"


class SelfParenting(InvalidReferenceError):
    default_message = "Category cannot be its own parent"


class HasDependentsError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource has dependents"


class CategoryHasSubcategories(HasDependentsError):
    default_message = (
        "Cannot delete category with existing subcategories. Delete subcategories first."
    )


class InvalidInputError(DomainError):
    """Field-level validation failure; `errors` holds one {field, message} per problem."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, exc) -> "InvalidInputError":
        """Build from a pydantic ValidationError (or anything with .errors())."""
        return cls(errors=format_validation_errors(exc.errors()))


# ── 401 ────────────────────────────────────────────
class AuthenticationError(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class InvalidCredentials(AuthenticationError):
    default_message = "Invalid credentials"


# ── 502 ────────────────────────────────────────────
class UploadFailure(DomainError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to upload image"


def format_validation_errors(raw_errors) -> list[dict]:
    """Flatten pydantic error dicts into {field, message} pairs."""
    formatted = []
    for err in raw_errors:
        # Drop the "body"/"query"/"path" prefix FastAPI adds to locations
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        formatted.append({"field": ".".join(loc) or None, "message": err.get("msg", "")})
    return formatted
