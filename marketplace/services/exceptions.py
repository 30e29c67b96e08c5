class MarketplaceError(Exception):
    """Base class for domain errors raised by the service layer."""
    pass


class NotFoundError(MarketplaceError):
    """Exception raised when a referenced product, category, user or order doesn't exist."""
    pass


class InvalidArgumentError(MarketplaceError):
    """Exception raised when input fails validation before anything is persisted."""
    pass


class SnapshotImmutableError(MarketplaceError):
    """Exception raised when a flush tries to change an order line's snapshot fields."""
    pass
