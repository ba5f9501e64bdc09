"""Custom exception hierarchy for the audit engine."""


class AuditError(Exception):
    """Base exception for all audit engine errors."""


# --- Configuration ---
class ConfigError(AuditError):
    """Invalid or missing configuration."""


# --- Storage ---
class StoreError(AuditError):
    """Record store read or write failure."""


class StoreUnavailable(StoreError):
    """The record store cannot be reached."""


class RecordDecodeError(StoreError):
    """A persisted record could not be decoded."""

    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"Undecodable record at {location}: {reason}")


# --- Draft ---
class DraftValidationError(AuditError):
    """Draft rejected before it reaches the store (e.g., empty trader name)."""
