"""
Service layer exceptions.
"""


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(message)


class StoreError(ServiceError):
    """Entry store read or write failed."""

    pass


class InvalidKeyError(StoreError):
    """Store key cannot be used safely."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Invalid store key: {key!r}", service_id="entry_store")


class EmailDeliveryError(ServiceError):
    """Sending an email failed."""

    def __init__(self, recipient: str, reason: str):
        self.recipient = recipient
        super().__init__(
            f"Failed to send email to {recipient}: {reason}", service_id="mailer"
        )


class ConfirmationError(ServiceError):
    """Confirmation code was rejected."""

    def __init__(self, message: str, conflict: bool = False):
        self.conflict = conflict
        super().__init__(message, service_id="confirmation")


class NoEntriesError(ServiceError):
    """The user has no stored journal entries."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No entries stored for {user_id}", service_id="journal")
