"""
Uniform result envelope returned by service operations.

Success:  ``{"success": true, "data": ...}``
Failure:  ``{"success": false, "reason": "<CODE>", "message": "...", "details": {...}}``
"""

from typing import Any, Dict, Optional

from pydantic import Field

from ..core.exceptions import DomainException
from .base import StandardizedModel


class OperationResult(StandardizedModel):
    success: bool
    data: Optional[Any] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls, reason: Any, message: str, details: Optional[Dict[str, Any]] = None
    ) -> "OperationResult":
        return cls(
            success=False,
            reason=getattr(reason, "value", reason),
            message=message,
            details=details or {},
        )

    @classmethod
    def from_exception(cls, exc: DomainException) -> "OperationResult":
        return cls.fail(getattr(exc, "reason", exc.code), exc.message, exc.details)

    def to_response(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "data": self._dump(self.data)}
        return {
            "success": False,
            "reason": self.reason,
            "message": self.message,
            "details": self.details,
        }

    @staticmethod
    def _dump(value: Any) -> Any:
        if isinstance(value, StandardizedModel):
            return value.model_dump(mode="json")
        if isinstance(value, list):
            return [OperationResult._dump(item) for item in value]
        if isinstance(value, dict):
            return {key: OperationResult._dump(item) for key, item in value.items()}
        return value
