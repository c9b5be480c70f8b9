"""Return types shared by the command surface."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import CommandError


@dataclass(slots=True)
class CommandResult:
    """Outcome of a command: success with an optional payload, or a typed failure."""

    success: bool
    error: CommandError | None = None
    message: str = ""
    building_id: str | None = None
    value: int | None = None

    @classmethod
    def ok(
        cls,
        message: str = "",
        *,
        building_id: str | None = None,
        value: int | None = None,
    ) -> CommandResult:
        return cls(success=True, message=message, building_id=building_id, value=value)

    @classmethod
    def fail(cls, error: CommandError, message: str) -> CommandResult:
        return cls(success=False, error=error, message=message)

    def __bool__(self) -> bool:
        return self.success
