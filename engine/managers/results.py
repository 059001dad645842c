"""Result types returned by managers and the controller.

Expected rule violations are reported through these, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class ValidationResult:
    """Outcome of a validate-only check.

    Attributes:
        valid: Whether the operation would be allowed.
        reason: Human-readable reason when not valid.
    """

    valid: bool
    reason: Optional[str] = None


@dataclass
class ActionResult:
    """Outcome of a state-changing operation.

    Attributes:
        success: Whether the operation was applied.
        error: Human-readable reason when it was not.
        data: The created or affected object, if any.
    """

    success: bool
    error: Optional[str] = None
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None) -> ActionResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> ActionResult:
        return cls(success=False, error=error)
