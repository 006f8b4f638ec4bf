"""
Service layer infrastructure.

Provides:
- ExpiringStore: In-memory key-value store with TTL and lazy expiry
- ExpirySweeper: Scheduled removal of expired entries
- SmtpMailer: Confirmation email delivery
"""

from server.services.errors import (
    ServiceError,
    StoreError,
    InvalidKeyError,
    EmailDeliveryError,
    ConfirmationError,
    NoEntriesError,
)
from server.services.cache import ExpiringStore, CacheEntry, CacheResult, CacheStats
from server.services.sweeper import ExpirySweeper
from server.services.mailer import Mailer, SmtpMailer

__all__ = [
    # Errors
    "ServiceError",
    "StoreError",
    "InvalidKeyError",
    "EmailDeliveryError",
    "ConfirmationError",
    "NoEntriesError",
    # Store
    "ExpiringStore",
    "CacheEntry",
    "CacheResult",
    "CacheStats",
    # Sweeper
    "ExpirySweeper",
    # Mail
    "Mailer",
    "SmtpMailer",
]
