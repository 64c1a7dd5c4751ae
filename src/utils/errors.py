"""Error handling utilities."""


class RealEstateError(Exception):
    """Base exception for the listing case backend."""
    pass


class NotFoundError(RealEstateError):
    """Requested entity does not exist."""
    pass


class KeyNotFoundError(NotFoundError):
    """Update target does not exist."""
    pass


class UnauthorizedError(RealEstateError):
    """Actor role is not permitted to perform the operation."""
    pass


class InvalidOperationError(RealEstateError):
    """Operation cannot run in the current state (missing identity, bad state)."""
    pass


class InvalidStatusTransitionError(InvalidOperationError):
    """Requested status change is not in the transition table."""
    pass


class ConfigurationError(RealEstateError):
    """Required configuration is missing."""
    pass


class SupabaseError(RealEstateError):
    """Supabase operation error."""
    pass


class DocumentStoreError(RealEstateError):
    """MongoDB operation error."""
    pass


class EmailDeliveryError(RealEstateError):
    """Email could not be handed to the transport."""
    pass
