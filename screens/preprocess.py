"""Raw-JSON pre-processing applied before a screen reaches the validator.

``apply_placeholders``    — swap placeholder tokens (e.g. ``{{logo}}``) for real
                            image URLs and substitute tokens inside text.
``inject_branch_buttons`` — give every conditional screen a trailing button so
                            the player can always continue past a branch.

Both functions return new structures and never mutate their input.
"""

from __future__ import annotations

import copy
from typing import Any

_IMAGE_KEYS = ("src", "imageSrc")
_TEXT_TYPES = ("text", "heading")


def _substitute_text(value: Any, placeholders: dict[str, str]) -> Any:
    if isinstance(value, str):
        for token, replacement in placeholders.items():
            value = value.replace(token, replacement)
        return value
    if isinstance(value, list):
        # Text segments
        return [
            {**seg, "content": _substitute_text(seg.get("content"), placeholders)}
            if isinstance(seg, dict) else seg
            for seg in value
        ]
    return value


def _walk(node: Any, placeholders: dict[str, str]) -> Any:
    if isinstance(node, list):
        return [_walk(child, placeholders) for child in node]
    if not isinstance(node, dict):
        return node

    out = {key: _walk(value, placeholders) for key, value in node.items()}
    for key in _IMAGE_KEYS:
        if isinstance(out.get(key), str) and out[key] in placeholders:
            out[key] = placeholders[out[key]]
    if out.get("type") in _TEXT_TYPES and "content" in out:
        out["content"] = _substitute_text(out["content"], placeholders)
    return out


def apply_placeholders(raw: Any, placeholders: dict[str, str] | None) -> Any:
    """Replace placeholder tokens throughout a raw screen (or list of screens).

    ``src`` / ``imageSrc`` values are replaced only on an exact match; text and
    heading content gets every token substituted in place.  Nested carousels,
    option lists, info cards and conditional screens are all covered.
    """
    if not placeholders:
        return copy.deepcopy(raw)
    return _walk(raw, placeholders)


def inject_branch_buttons(
    raw_screen: dict[str, Any],
    is_last: bool,
    continue_label: str = "Continue",
    finish_label: str = "Finish",
) -> dict[str, Any]:
    """Append a default button to conditional screens that have none."""
    screen = copy.deepcopy(raw_screen)
    label = finish_label if is_last else continue_label

    stack = [screen.get("content")]
    while stack:
        content = stack.pop()
        if not isinstance(content, list):
            continue
        for item in content:
            if not isinstance(item, dict) or item.get("type") != "selection":
                continue
            for branch in (item.get("conditionalScreens") or {}).values():
                if not isinstance(branch, dict) or not isinstance(branch.get("content"), list):
                    continue
                if not any(
                    isinstance(c, dict) and c.get("type") == "button" for c in branch["content"]
                ):
                    branch["content"].append({"type": "button", "text": label})
                stack.append(branch["content"])
    return screen
