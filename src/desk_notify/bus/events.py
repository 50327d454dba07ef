from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union


def _line(event: str, notification_id: int, print_id: bool, fields: dict[str, Any]) -> str:
    out: dict[str, Any] = {"event": event}
    if print_id:
        out["id"] = int(notification_id)
    out.update(fields)
    return json.dumps(out, ensure_ascii=False, separators=(",", ":"))


@dataclass(frozen=True, slots=True)
class ActionEvent:
    notification_id: int
    action: str | None = None
    action_data: Any = None

    def to_json(self, *, print_id: bool = False) -> str:
        if self.action_data is not None:
            return _line("action", self.notification_id, print_id, {"action_data": self.action_data})
        return _line("action", self.notification_id, print_id, {"action": self.action})


@dataclass(frozen=True, slots=True)
class ClosedEvent:
    notification_id: int
    reason: int

    def to_json(self, *, print_id: bool = False) -> str:
        return _line("closed", self.notification_id, print_id, {"reason": int(self.reason)})


@dataclass(frozen=True, slots=True)
class AwaitTimeoutEvent:
    notification_id: int
    timeout_ms: int

    def to_json(self, *, print_id: bool = False) -> str:
        return _line("await-timeout", self.notification_id, print_id, {"timeout_ms": int(self.timeout_ms)})


Event = Union[ActionEvent, ClosedEvent, AwaitTimeoutEvent]


def decode_action_key(notification_id: int, action_key: str) -> ActionEvent:
    """
    Action keys that hold a JSON object or array are passed through as
    structured `action_data`; everything else is the plain `action` string.
    """
    try:
        data = json.loads(action_key)
    except (TypeError, ValueError):
        return ActionEvent(notification_id=notification_id, action=action_key)
    if isinstance(data, (dict, list)):
        return ActionEvent(notification_id=notification_id, action_data=data)
    return ActionEvent(notification_id=notification_id, action=action_key)
