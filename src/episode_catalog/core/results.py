"""
Read and write results

Every operation routed through the failover policy returns one of these,
tagged with the store that actually served it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class Provenance(str, Enum):
    """Which backing store served an operation"""

    REMOTE = "remote"
    OFFLINE = "offline"


@dataclass
class ReadResult(Generic[T]):
    """
    Result of a read

    A read never fails from the caller's point of view: when the remote
    call fails the offline answer is returned instead (possibly empty or
    None for a missing record).

    Attributes:
        data: the value read
        provenance: store that served the value
        remote_error: message of the remote failure that caused a fallback
    """

    data: T
    provenance: Provenance = Provenance.REMOTE
    remote_error: Optional[str] = None
    completed_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def from_offline(self) -> bool:
        """Provenance flag driving the offline banner"""
        return self.provenance is Provenance.OFFLINE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "provenance": self.provenance.value,
            "remote_error": self.remote_error,
            "completed_at": self.completed_at.isoformat(),
        }


@dataclass
class WriteResult(Generic[T]):
    """
    Result of a create, update or delete

    Attributes:
        success: the write landed in one of the stores
        data: created record or affected id
        provenance: store the write landed in
        warnings: non-fatal notices for the caller (offline fallback)
        error_type: exception class name when success is False
    """

    success: bool
    data: Optional[T] = None
    provenance: Provenance = Provenance.REMOTE
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    error_type: Optional[str] = None
    completed_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def from_offline(self) -> bool:
        return self.provenance is Provenance.OFFLINE

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "provenance": self.provenance.value,
            "warnings": self.warnings,
            "errors": self.errors,
            "error_type": self.error_type,
            "completed_at": self.completed_at.isoformat(),
        }

    @classmethod
    def success_result(
        cls,
        data: Any,
        provenance: Provenance = Provenance.REMOTE,
        warnings: Optional[List[str]] = None,
    ) -> "WriteResult":
        return cls(
            success=True,
            data=data,
            provenance=provenance,
            warnings=warnings or [],
        )

    @classmethod
    def failure_result(
        cls,
        error: str,
        error_type: str = "CatalogError",
        provenance: Provenance = Provenance.OFFLINE,
        warnings: Optional[List[str]] = None,
    ) -> "WriteResult":
        return cls(
            success=False,
            provenance=provenance,
            errors=[error],
            error_type=error_type,
            warnings=warnings or [],
        )

    def __repr__(self) -> str:
        status = "SUCCESS" if self.success else f"FAILED({self.error_type})"
        return f"WriteResult({status}, provenance={self.provenance.value})"

    def __bool__(self) -> bool:
        return self.success
