"""Screen validator — checks editor JSON before it reaches the player.

Two entry points with different failure policies:

``validate_screen``      — ingestion.  Any structural problem, unknown ``type``
                           tag or malformed item raises ``ScreenValidationError``
                           naming the offending position.  Nothing renders.
``parse_screen_lenient`` — render time.  The screen must still be structurally
                           sound, but items that fail to parse are skipped with
                           a warning instead of failing the whole screen.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

from pydantic import TypeAdapter, ValidationError

from screens.models import ContentItem, ScreenContent

logger = logging.getLogger(__name__)

DEFAULT_MAX_NESTING_DEPTH = 8

InputMode = Literal["single", "array", "config"]

_content_adapter: TypeAdapter[Any] = TypeAdapter(ContentItem)


class ScreenValidationError(ValueError):
    """Raised when screen JSON is structurally invalid."""


def _prefix(context: str | None) -> str:
    return f"{context}: " if context else ""


def _check_structure(value: Any, context: str | None) -> None:
    if (
        not isinstance(value, dict)
        or not isinstance(value.get("content"), list)
        or not isinstance(value.get("id"), str)
    ):
        raise ScreenValidationError(
            f'{_prefix(context)}Each screen must look like {{"id": "screen-id", "content": [...]}}.'
        )


def _nested_children(item: dict) -> list[Any]:
    if item.get("type") == "carousel":
        children = item.get("items")
    elif item.get("type") == "card" and item.get("variant") == "container":
        children = item.get("content")
    else:
        return []
    return children if isinstance(children, list) else []


def check_nesting_depth(content: list[Any], max_depth: int, context: str | None = None) -> None:
    """Reject carousel/container trees nested deeper than ``max_depth``.

    Walks with an explicit stack so hostile input cannot exhaust recursion
    before the model parse even starts.
    """
    stack: list[tuple[Any, int, str]] = [
        (item, 1, f"content[{i}]") for i, item in enumerate(content)
    ]
    while stack:
        item, depth, path = stack.pop()
        if not isinstance(item, dict):
            continue
        children = _nested_children(item)
        if children and depth > max_depth:
            raise ScreenValidationError(
                f"{_prefix(context)}{path}: nesting deeper than {max_depth} levels"
            )
        for j, child in enumerate(children):
            stack.append((child, depth + 1, f"{path}.items[{j}]"))


def _describe_item_error(exc: ValidationError, item: dict) -> str:
    """Turn a pydantic error for one content item into a short message."""
    for err in exc.errors():
        if err["type"] == "union_tag_invalid" and not err["loc"]:
            return f"unknown content type {item.get('type')!r}"
        if err["type"] == "union_tag_invalid" and err["loc"] == ("card",):
            return f"unknown card variant {item.get('variant')!r}"
        if err["type"] == "union_tag_not_found" and not err["loc"]:
            return "missing 'type' tag"
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first["loc"][1:]) or "item"
    return f"{loc}: {first['msg']}"


def parse_content_item(raw: Any, context: str | None = None) -> Any:
    """Parse a single content item, raising ``ScreenValidationError`` on failure."""
    if not isinstance(raw, dict):
        raise ScreenValidationError(f"{_prefix(context)}content item must be an object")
    try:
        return _content_adapter.validate_python(raw)
    except ValidationError as exc:
        raise ScreenValidationError(f"{_prefix(context)}{_describe_item_error(exc, raw)}") from exc


def validate_screen(
    value: Any,
    context: str | None = None,
    max_depth: int = DEFAULT_MAX_NESTING_DEPTH,
) -> ScreenContent:
    """Strictly validate one screen; every item must parse."""
    _check_structure(value, context)
    check_nesting_depth(value["content"], max_depth, context)

    for i, item in enumerate(value["content"]):
        item_context = f"{_prefix(context)}content[{i}]"
        parse_content_item(item, item_context)
        if isinstance(item, dict) and item.get("type") == "selection":
            _check_option_ids(item, item_context)

    try:
        screen = ScreenContent.model_validate(value)
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(part) for part in first["loc"])
        raise ScreenValidationError(f"{_prefix(context)}{loc}: {first['msg']}") from exc

    buttons = sum(1 for item in screen.content if item.type == "button")
    if buttons > 1:
        logger.warning("%sscreen '%s' has %d buttons; only the first is used",
                       _prefix(context), screen.id, buttons)
    return screen


def _check_option_ids(item: dict, context: str) -> None:
    """Option ``id``/``value`` must be unique within one selection."""
    seen: set[str] = set()
    for index, option in enumerate(item.get("options") or []):
        if not isinstance(option, dict):
            continue
        ident = option.get("id")
        if ident is None:
            ident = option.get("value", index)
        if str(ident) in seen:
            raise ScreenValidationError(f"{context}: duplicate option id {ident!r}")
        seen.add(str(ident))


def parse_screen_lenient(
    value: Any,
    context: str | None = None,
    max_depth: int = DEFAULT_MAX_NESTING_DEPTH,
) -> ScreenContent:
    """Parse a screen for rendering, skipping items that do not parse."""
    _check_structure(value, context)
    check_nesting_depth(value["content"], max_depth, context)

    items = []
    for i, raw in enumerate(value["content"]):
        try:
            items.append(parse_content_item(raw, f"content[{i}]"))
        except ScreenValidationError as exc:
            logger.warning("Skipping content item in screen '%s': %s", value["id"], exc)

    fields = {k: v for k, v in value.items() if k != "content"}
    try:
        return ScreenContent.model_validate({**fields, "content": []}).model_copy(
            update={"content": items}
        )
    except ValidationError as exc:
        raise ScreenValidationError(f"{_prefix(context)}{exc.errors()[0]['msg']}") from exc


def normalize_screens_input(
    parsed: Any,
    max_depth: int = DEFAULT_MAX_NESTING_DEPTH,
) -> tuple[list[ScreenContent], InputMode]:
    """Accept a screen array, a ``{"screens": [...]}`` config, or one screen."""
    if isinstance(parsed, list):
        if not parsed:
            raise ScreenValidationError("Screens array cannot be empty.")
        screens = [
            validate_screen(item, f"Item {i + 1}", max_depth) for i, item in enumerate(parsed)
        ]
        mode: InputMode = "array"
    elif isinstance(parsed, dict) and isinstance(parsed.get("screens"), list):
        if not parsed["screens"]:
            raise ScreenValidationError("Config.screens array cannot be empty.")
        screens = [
            validate_screen(item, f"screens[{i}]", max_depth)
            for i, item in enumerate(parsed["screens"])
        ]
        mode = "config"
    else:
        screens = [validate_screen(parsed, max_depth=max_depth)]
        mode = "single"

    seen: set[str] = set()
    for screen in screens:
        if screen.id in seen:
            raise ScreenValidationError(f"Duplicate screen id {screen.id!r}.")
        seen.add(screen.id)
    return screens, mode


def load_screens_json(text: str) -> Any:
    """Decode quiz JSON text; decode errors become ``ScreenValidationError``."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ScreenValidationError(f"Invalid JSON: {exc.msg} (line {exc.lineno})") from exc
