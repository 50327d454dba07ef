from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Annotated, Any, Literal, TextIO, Union

import yaml
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from desk_notify.errors import InputReadError, ParseError
from desk_notify.utils.log import logger

from .models import STDIN_MARKER, Urgency

_BOOL_TAG = "tag:yaml.org,2002:bool"
_INT_TAG = "tag:yaml.org,2002:int"
_FLOAT_TAG = "tag:yaml.org,2002:float"
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _Yaml12Loader(yaml.SafeLoader):
    """
    SafeLoader resolving plain scalars with the YAML 1.2 core schema.

    Only true/false are booleans, dates stay strings, and integers are
    decimal, 0o octal or 0x hex (no sexagesimal, no underscores).
    """


_Yaml12Loader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers if tag not in {_BOOL_TAG, _INT_TAG, _FLOAT_TAG, _TIMESTAMP_TAG}]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_Yaml12Loader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)
_Yaml12Loader.add_implicit_resolver(
    _INT_TAG,
    re.compile(r"^(?:[-+]?[0-9]+|0o[0-7]+|0x[0-9a-fA-F]+)$"),
    list("-+0123456789"),
)
_Yaml12Loader.add_implicit_resolver(
    _FLOAT_TAG,
    re.compile(
        r"^(?:[-+]?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?)(?:[eE][-+]?[0-9]+)?"
        r"|[-+]?\.(?:inf|Inf|INF)"
        r"|\.(?:nan|NaN|NAN))$"
    ),
    list("-+.0123456789"),
)


def _construct_int(loader: _Yaml12Loader, node: yaml.ScalarNode) -> int:
    text = loader.construct_scalar(node)
    try:
        if text.startswith("0o"):
            return int(text[2:], 8)
        if text.startswith("0x"):
            return int(text[2:], 16)
        return int(text, 10)
    except ValueError as ex:
        raise yaml.constructor.ConstructorError(None, None, f"invalid integer {text!r}", node.start_mark) from ex


_Yaml12Loader.add_constructor(_INT_TAG, _construct_int)


def _scalar_text(value: Any) -> Any:
    # YAML scalars in text fields are read as their text
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, date)):
        return str(value)
    return value


ScalarText = Annotated[str, BeforeValidator(_scalar_text)]


class LabeledItem(BaseModel):
    """Explicit `{id, label}` form of an action or a card choice."""

    model_config = ConfigDict(extra="ignore")

    id: ScalarText
    label: ScalarText


# "ID:LABEL" string or {id, label}
DocumentAction = Union[ScalarText, LabeledItem]
# bare label (id derived) or {id, label}
Choice = Union[ScalarText, LabeledItem]


class MultipleChoiceCard(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["multiple_choice"]
    question: ScalarText
    choices: list[Choice] = Field(default_factory=list)
    allow_other: bool = False


class PermissionCard(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["permission"]
    question: ScalarText
    allow_label: ScalarText | None = None


Card = Annotated[Union[MultipleChoiceCard, PermissionCard], Field(discriminator="type")]


class ParsedDocument(BaseModel):
    """
    YAML payload. Mirrors the CLI fields; unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    summary: ScalarText | None = None
    body: ScalarText | None = None
    urgency: Urgency | None = None
    icon: ScalarText | None = None
    app_name: ScalarText | None = None
    category: ScalarText | None = None
    hints: dict[str, Any] = Field(default_factory=dict)
    actions: list[DocumentAction] = Field(default_factory=list)
    progress: int | None = None
    timeout: int | None = None
    expire_time: int | None = None
    id: int | None = None
    replace: int | None = None
    print_id: bool | None = None
    await_result: bool | None = Field(default=None, alias="await")
    card: Card | None = None


def _read_stream(stream: TextIO, what: str) -> str:
    try:
        return stream.read()
    except (OSError, UnicodeDecodeError) as ex:
        raise InputReadError(f"failed to read {what} from stdin: {ex}") from ex


def read_body(stdin: TextIO) -> str:
    return _read_stream(stdin, "body")


def read_source(file_path: str | None, *, stdin: TextIO, piped: bool) -> str:
    """
    Return raw YAML text.

    Sources, in order:
      - `--file -` reads stdin
      - `--file <path>` reads the file
      - piped stdin (caller decides: no body words and stdin is not a tty)
    """
    if file_path == STDIN_MARKER:
        return _read_stream(stdin, "YAML")
    if file_path:
        p = Path(file_path)
        try:
            return p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as ex:
            raise InputReadError(f"failed to read YAML file: {p}: {ex}") from ex
    if piped:
        return _read_stream(stdin, "YAML")
    return ""


def parse_document(text: str) -> ParsedDocument | None:
    if not text.strip():
        return None
    try:
        data = yaml.load(text, Loader=_Yaml12Loader)
    except yaml.YAMLError as ex:
        raise ParseError(f"failed to parse YAML payload: {ex}") from ex
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ParseError("failed to parse YAML payload: top level must be a mapping")
    try:
        doc = ParsedDocument.model_validate(data)
    except PydanticValidationError as ex:
        raise ParseError(f"failed to parse YAML payload: {ex}") from ex
    logger.debug(
        "yaml_payload_parsed",
        keys=sorted(str(k) for k in data),
        card=doc.card.type if doc.card is not None else None,
    )
    return doc


def load_document(file_path: str | None, *, stdin: TextIO, piped: bool) -> ParsedDocument | None:
    return parse_document(read_source(file_path, stdin=stdin, piped=piped))
