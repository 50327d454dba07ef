from __future__ import annotations

from desk_notify.config import get_settings
from desk_notify.errors import ParseError, UsageError, ValidationError
from desk_notify.utils.log import logger
from desk_notify.utils.text import sanitize_text

from . import cards
from .coerce import coerce, hint_from_scalar
from .document import DocumentAction, LabeledItem, ParsedDocument
from .models import (
    INT32_MAX,
    INT32_MIN,
    UINT32_MAX,
    HintValue,
    MergedRequest,
    RawInput,
    Urgency,
)


def check_sources(cli: RawInput) -> None:
    """
    Reject input source combinations that would both need stdin.
    Run before anything is read.
    """
    if cli.file is not None and cli.wants_stdin_body():
        raise UsageError("cannot use BODY='-' together with --file")


def parse_action(token: str) -> tuple[str, str]:
    """`ID:LABEL` -> (id, label), split at the first colon."""
    if ":" not in token:
        raise ParseError(f"invalid --action '{token}', expected ID:LABEL")
    aid, label = token.split(":", 1)
    aid = sanitize_text(aid.strip())
    label = sanitize_text(label.strip())
    if not aid or not label:
        raise ParseError(f"invalid --action '{token}', ID and LABEL must be non-empty")
    return aid, label


def parse_hint(token: str) -> tuple[str, HintValue]:
    """`KEY:VALUE` -> (key, typed value), split at the first colon."""
    if ":" not in token:
        raise ParseError(f"invalid --hint '{token}', expected KEY:VALUE")
    key, raw = token.split(":", 1)
    key = sanitize_text(key.strip())
    if not key:
        raise ParseError(f"invalid --hint '{token}', key cannot be empty")
    return key, hint_from_scalar(coerce(raw.strip()))


def _document_action(action: DocumentAction) -> tuple[str, str]:
    if isinstance(action, LabeledItem):
        return sanitize_text(action.id), sanitize_text(action.label)
    return parse_action(action)


def _first(*values):
    for v in values:
        if v is not None:
            return v
    return None


def _check_range(name: str, value: int, lo: int, hi: int) -> int:
    if value < lo or value > hi:
        raise ValidationError(f"{name} must be between {lo} and {hi}")
    return value


def compose(
    cli: RawInput,
    document: ParsedDocument | None = None,
    piped_body: str | None = None,
) -> MergedRequest:
    """
    Merge CLI flags, the YAML payload and piped body text into one request.

    CLI beats the payload for every scalar; explicit values beat derived ones.
    Hints are layered so later writes win:

        payload hints -> category -> progress -> --hint

    Actions are payload actions followed by --action, in order, never deduplicated.
    """
    check_sources(cli)
    doc = document or ParsedDocument()
    s = get_settings()

    hints: dict[str, HintValue] = {}
    for key, value in doc.hints.items():
        hints[sanitize_text(key)] = hint_from_scalar(value)

    actions: list[str] = []
    for action in doc.actions:
        actions.extend(_document_action(action))
    for token in cli.actions:
        actions.extend(parse_action(token))

    body_from_cli = None
    if cli.body and not cli.wants_stdin_body():
        body_from_cli = " ".join(cli.body)
    stdin_body = piped_body if cli.wants_stdin_body() else None

    summary = sanitize_text(_first(cli.summary, doc.summary) or "")
    body = sanitize_text(_first(stdin_body, body_from_cli, doc.body) or "")
    app_name = sanitize_text(_first(cli.app_name, doc.app_name, s.app_name) or "")
    icon = sanitize_text(_first(cli.icon, doc.icon) or "")

    urgency = _first(cli.urgency, doc.urgency) or Urgency.normal
    hints["urgency"] = HintValue.byte(Urgency(urgency).hint_value)

    category = _first(cli.category, doc.category)
    if category is not None:
        hints["category"] = HintValue.string(sanitize_text(category))

    progress = _first(cli.progress, doc.progress)
    if progress is not None:
        if progress < 0 or progress > 100:
            raise ValidationError("progress must be between 0 and 100")
        hints["value"] = HintValue.int32(progress)

    for token in cli.hints:
        key, value = parse_hint(token)
        hints[key] = value

    replaces_id = _check_range("replace id", int(_first(cli.replace_id, doc.replace, doc.id, 0)), 0, UINT32_MAX)
    expire_timeout = _check_range(
        "timeout", int(_first(cli.expire_timeout, doc.expire_time, doc.timeout, -1)), INT32_MIN, INT32_MAX
    )
    print_id = bool(cli.print_id or doc.print_id)
    await_result = bool(cli.await_result or doc.await_result)

    if doc.card is not None:
        if body:
            raise UsageError("cannot combine a card with an explicit body")
        rendered = cards.render(doc.card)
        body = rendered.body_json
        if not summary:
            summary = rendered.default_summary
        if not actions:
            for aid, label in rendered.actions:
                actions.extend((aid, label))
        hints["x-card"] = HintValue.boolean(True)
        hints["x-card-version"] = HintValue.string(cards.CARD_VERSION)

    await_timeout_ms = None
    if await_result and expire_timeout >= 0:
        await_timeout_ms = expire_timeout + int(s.await_grace_ms)

    logger.debug(
        "request_composed",
        app_name=app_name,
        replaces_id=replaces_id,
        actions=len(actions) // 2,
        hints=sorted(hints),
        card=doc.card.type if doc.card is not None else None,
        await_timeout_ms=await_timeout_ms,
    )
    return MergedRequest(
        app_name=app_name,
        replaces_id=replaces_id,
        icon=icon,
        summary=summary,
        body=body,
        actions=actions,
        hints=hints,
        expire_timeout=expire_timeout,
        print_id=print_id,
        await_result=await_result,
        await_timeout_ms=await_timeout_ms,
    )
