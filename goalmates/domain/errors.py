"""Domain error types."""


class NotFoundError(LookupError):
    """Raised when a resource does not exist or is not visible to the caller."""

    def __init__(self, resource: str, identifier: object) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class NotificationValidationError(ValueError):
    """Raised when a notification payload cannot be persisted."""


__all__ = ["NotFoundError", "NotificationValidationError"]
