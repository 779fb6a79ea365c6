"""Serialization helpers for Sia ASTs."""

from __future__ import annotations

import json
from dataclasses import fields
from typing import Any

from sia.ast import AstNode, Program


def ast_to_dict(node: AstNode | None, include_spans: bool = True) -> dict[str, Any] | None:
    """Convert an AST node into a JSON-compatible mapping.

    With include_spans=False the result describes structure only, so two
    parses of equivalent source compare equal.
    """
    if node is None:
        return None

    payload: dict[str, Any] = {"type": type(node).__name__}
    for item in fields(node):
        value = getattr(node, item.name)
        if item.name == "span":
            if include_spans:
                payload["span"] = value.to_dict()
            continue
        payload[item.name] = _convert(value, include_spans)
    return payload


def _convert(value: Any, include_spans: bool) -> Any:
    if isinstance(value, AstNode):
        return ast_to_dict(value, include_spans)
    if isinstance(value, tuple):
        return [_convert(item, include_spans) for item in value]
    return value


def program_to_json(program: Program, indent: int = 2, include_spans: bool = True) -> str:
    """Serialize a Program AST to JSON text."""
    return json.dumps(ast_to_dict(program, include_spans), indent=indent, sort_keys=True)
