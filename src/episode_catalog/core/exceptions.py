"""
Episode catalog exceptions

All data-access errors inherit from CatalogError. Only RemoteError
subclasses are converted into an offline attempt by the failover policy.
"""

from typing import List, Optional


class CatalogError(Exception):
    """Base catalog exception"""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.message = message
        self.operation = operation
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.operation:
            return f"[{self.operation}] {self.message}"
        return self.message


class RemoteError(CatalogError):
    """Any failure reported by the remote catalog service"""


class RemoteUnavailable(RemoteError):
    """
    Transport level failure

    Raised for network errors, non-2xx responses and responses that
    cannot be decoded into the expected shape.

    Attributes:
        status_code: HTTP status when one was received
        original_error: underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.status_code = status_code
        self.original_error = original_error
        super().__init__(message, operation)


class RemoteRejected(RemoteError):
    """
    Well-formed error response from the remote service

    Attributes:
        errors: messages from the GraphQL errors array
    """

    def __init__(self, errors: List[str], operation: Optional[str] = None):
        self.errors = list(errors)
        message = "; ".join(self.errors) or "Remote service rejected the request"
        super().__init__(message, operation)


class NotFound(CatalogError):
    """Neither store holds the record"""

    def __init__(self, record_id: str, operation: Optional[str] = None):
        self.record_id = record_id
        super().__init__(f"Episode not found: {record_id}", operation)


class ValidationFailed(CatalogError):
    """Malformed write input"""

    def __init__(self, errors: List[str], operation: Optional[str] = None):
        self.errors = list(errors)
        super().__init__("Invalid episode input: " + "; ".join(self.errors), operation)


class SubscriptionError(CatalogError):
    """Protocol violation on a subscription stream"""


class MetadataUnavailable(CatalogError):
    """Metadata lookup failed"""


class MetadataNotFound(MetadataUnavailable):
    """Metadata service answered but had no match"""
