# KBSync Error Model
# Serializable error details attached to failed entities

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class ErrorBody:
    """Normalized error description."""

    code: str
    message_with_params: str
    entity_name: Optional[str] = None
    message_params: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "code": self.code,
            "message_with_params": self.message_with_params,
            "entity_name": self.entity_name,
            "message_params": self.message_params,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ErrorBody":
        """Create from dictionary."""
        return cls(
            code=data.get("code", ""),
            message_with_params=data.get("message_with_params", ""),
            entity_name=data.get("entity_name"),
            message_params=data.get("message_params"),
        )
