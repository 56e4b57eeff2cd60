"""Error handling utilities."""

from typing import Optional


class BoxDropError(Exception):
    """Base exception for the box drop backend."""
    pass


class InputValidationError(BoxDropError):
    """Request input is missing or malformed."""
    pass


class AuthenticationError(BoxDropError):
    """Session cookie or password check failed."""
    pass


class NotFoundError(BoxDropError):
    """Referenced record does not exist."""

    def __init__(self, entity: str, record_id: object):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} not found: {record_id}")


class DuplicateAddressError(BoxDropError):
    """A box drop already exists for the homeowner address."""

    def __init__(self, address: str, existing: dict):
        self.address = address
        self.existing = existing
        super().__init__(f"Box drop already exists for address: {address}")

    def to_dict(self) -> dict:
        """Conflict body returned to the caller."""
        return {
            "error": "duplicate_address",
            "existing": {
                "id": self.existing.get("id"),
                "scheduled_date": self.existing.get("scheduled_date"),
                "created_at": self.existing.get("created_at"),
            },
            "message": (
                "A box drop already exists for this address. "
                "View the existing drop or resubmit with allow_duplicate=true to create another."
            ),
        }


class RoutingError(BoxDropError):
    """Routing service call failed or returned an unusable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(BoxDropError):
    """Required environment configuration is missing."""
    pass


class SupabaseError(BoxDropError):
    """Supabase operation error."""
    pass
