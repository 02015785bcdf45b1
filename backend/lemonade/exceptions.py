"""
Lemonade Backend: Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions raised by the service layer.
How:   Each exception carries a user-facing message and an optional context
       dict. The HTTP layer (main.py) maps each type to a status code; any
       other caller can catch them directly.
Who:   Raised by services; caught by global handlers or library callers.

Exception Hierarchy:
    LemonadeError (base)
    ├── ValidationError          → 400 Bad Request (input rejected before any write)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (delete blocked by a reference)
    │   ├── DuplicateNameError   → 409 Conflict (catalog name already taken)
    │   └── DuplicateLinkError   → 409 Conflict (price already set for the pair)
    ├── InternalError            → 500 (storage inconsistency after commit)
    └── DatabaseError            → 500 (unexpected storage failure)

None of these represent transient faults, so nothing in the service layer
retries on them.
"""

from typing import Any, Dict, Optional


class LemonadeError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only returned for client errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(LemonadeError):
    """
    Raised when caller input is malformed or out of range.

    Always raised before anything is written: empty names, negative prices,
    prices with more than two fractional digits, empty orders, quantities
    below one.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(LemonadeError):
    """
    Raised when a referenced entity does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so callers never receive a silent default.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(LemonadeError):
    """
    Raised when a write would violate a referential or uniqueness rule.

    Used directly for restrict-on-delete: a beverage type or size that is
    still referenced by a placed order cannot be deleted.
    """

    def __init__(
        self,
        message: str = "The request conflicts with existing data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DuplicateNameError(ConflictError):
    """Raised when a catalog name is already used by another record of the same kind."""

    def __init__(
        self,
        resource: str,
        name: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({"resource": resource, "name": name})
        super().__init__(message=f"{resource} name '{name}' is already in use", context=ctx)
        self.resource = resource
        self.name = name


class DuplicateLinkError(ConflictError):
    """Raised when a price link already exists for a (type, size) pair."""

    def __init__(
        self,
        beverage_type_id: Any,
        beverage_size_id: Any,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({
            "beverage_type_id": str(beverage_type_id),
            "beverage_size_id": str(beverage_size_id),
        })
        super().__init__(
            message=(
                f"A price link for type '{beverage_type_id}' and "
                f"size '{beverage_size_id}' already exists"
            ),
            context=ctx,
        )
        self.beverage_type_id = beverage_type_id
        self.beverage_size_id = beverage_size_id


class InternalError(LemonadeError):
    """
    Raised when storage contradicts a write that just committed.

    Example: an order commits but cannot be read back. Indicates a bug in the
    storage layer, not a usage error, and is never retried.
    """

    def __init__(
        self,
        message: str = "An internal error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(LemonadeError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to clients is always generic; driver details (SQL,
    constraint names) are kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
