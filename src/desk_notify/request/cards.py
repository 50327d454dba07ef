"""
Card templates.

A card is a declarative prompt in the YAML payload. Rendering turns it into
three things the notification request needs:

  - a JSON body a card-aware notification server can draw
  - the action buttons (id/label pairs)
  - a fallback summary for when the payload has none

Ids derived from labels are not checked for collisions: "Yes!" and "yes"
both become `yes`, and the server routes both buttons to the same key.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from desk_notify.errors import ValidationError
from desk_notify.utils.text import sanitize_text

from .document import LabeledItem, MultipleChoiceCard, PermissionCard

CARD_FORMAT = "notify-card"
CARD_VERSION = "v1"

_SEPARATORS = frozenset(" \t\r\n\v\f-_")


@dataclass(frozen=True, slots=True)
class RenderedCard:
    body_json: str
    actions: list[tuple[str, str]]
    default_summary: str


def derive_choice_id(label: str, index: int) -> str:
    """
    `index` is 1-based and only used when nothing usable is left of the label.

    >>> derive_choice_id("Yes, please!", 1)
    'yes_please'
    >>> derive_choice_id("???", 3)
    'choice_3'
    """
    out: list[str] = []
    for ch in label:
        if ch.isascii() and ch.isalnum():
            out.append(ch.lower())
        elif (ch in _SEPARATORS or ch.isspace()) and out and out[-1] != "_":
            out.append("_")
    derived = "".join(out).strip("_")
    return derived or f"choice_{index}"


def _clean(value: str) -> str:
    return sanitize_text(value).strip()


def _dump(payload: dict) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def _render_multiple_choice(card: MultipleChoiceCard) -> RenderedCard:
    if not card.choices:
        raise ValidationError("multiple_choice card needs at least one choice")

    pairs: list[tuple[str, str]] = []
    for idx, choice in enumerate(card.choices, 1):
        if isinstance(choice, LabeledItem):
            cid, label = _clean(choice.id), _clean(choice.label)
        else:
            label = _clean(choice)
            cid = _clean(derive_choice_id(label, idx))
        if not cid or not label:
            raise ValidationError(f"card choice {idx} needs a non-empty id and label")
        pairs.append((cid, label))

    body = _dump(
        {
            "format": CARD_FORMAT,
            "version": CARD_VERSION,
            "type": "multiple_choice",
            "question": sanitize_text(card.question),
            "choices": [{"id": cid, "label": label} for cid, label in pairs],
            "allow_other": bool(card.allow_other),
        }
    )
    return RenderedCard(body_json=body, actions=pairs, default_summary="Question")


def _render_permission(card: PermissionCard) -> RenderedCard:
    allow_label = _clean(card.allow_label or "") or "Allow"
    body = _dump(
        {
            "format": CARD_FORMAT,
            "version": CARD_VERSION,
            "type": "permission",
            "question": sanitize_text(card.question),
            "allow_label": allow_label,
        }
    )
    return RenderedCard(body_json=body, actions=[("allow", allow_label)], default_summary="Permission")


def render(card: MultipleChoiceCard | PermissionCard) -> RenderedCard:
    if isinstance(card, MultipleChoiceCard):
        return _render_multiple_choice(card)
    if isinstance(card, PermissionCard):
        return _render_permission(card)
    raise ValidationError(f"unsupported card type: {type(card).__name__}")
