from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

STDIN_MARKER = "-"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
UINT32_MAX = 2**32 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1


class Urgency(str, Enum):
    low = "low"
    normal = "normal"
    critical = "critical"

    @property
    def hint_value(self) -> int:
        return {"low": 0, "normal": 1, "critical": 2}[self.value]


@dataclass(frozen=True, slots=True)
class HintValue:
    """
    Typed hint scalar.

    `signature` is the D-Bus type code the value is sent as:
    b (bool), y (byte), i (int32), x (int64), t (uint64), d (double), s (string).
    """

    signature: str
    value: Any

    @classmethod
    def boolean(cls, v: bool) -> HintValue:
        return cls("b", bool(v))

    @classmethod
    def byte(cls, v: int) -> HintValue:
        return cls("y", int(v))

    @classmethod
    def int32(cls, v: int) -> HintValue:
        return cls("i", int(v))

    @classmethod
    def string(cls, v: str) -> HintValue:
        return cls("s", str(v))


@dataclass(slots=True)
class RawInput:
    """Values as they arrive from the command line."""

    summary: str | None = None
    body: list[str] = field(default_factory=list)
    file: str | None = None
    urgency: Urgency | None = None
    icon: str | None = None
    app_name: str | None = None
    category: str | None = None
    hints: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)
    progress: int | None = None
    expire_timeout: int | None = None
    replace_id: int | None = None
    print_id: bool = False
    await_result: bool = False

    def wants_stdin_body(self) -> bool:
        return self.body == [STDIN_MARKER]

    def is_empty(self) -> bool:
        return (
            self.summary is None
            and not self.body
            and self.file is None
            and self.urgency is None
            and self.icon is None
            and self.app_name is None
            and self.category is None
            and not self.hints
            and not self.actions
            and self.progress is None
            and self.expire_timeout is None
            and self.replace_id is None
            and not self.print_id
            and not self.await_result
        )


@dataclass(slots=True)
class MergedRequest:
    app_name: str
    replaces_id: int
    icon: str
    summary: str
    body: str
    actions: list[str]
    hints: dict[str, HintValue]
    expire_timeout: int
    print_id: bool = False
    await_result: bool = False
    await_timeout_ms: int | None = None

    def action_pairs(self) -> list[tuple[str, str]]:
        return list(zip(self.actions[0::2], self.actions[1::2]))
