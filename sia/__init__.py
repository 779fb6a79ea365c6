"""Sia scripting language interpreter."""

from __future__ import annotations

import logging
from typing import Any


logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Evaluator",
    "SiaError",
    "parse",
    "parse_source",
    "run_file",
    "run_source",
]


def parse(*args: Any, **kwargs: Any):
    from sia.parser import parse as _parse

    return _parse(*args, **kwargs)


def parse_source(*args: Any, **kwargs: Any):
    from sia.main import parse_source as _parse_source

    return _parse_source(*args, **kwargs)


def run_source(*args: Any, **kwargs: Any):
    from sia.main import run_source as _run_source

    return _run_source(*args, **kwargs)


def run_file(*args: Any, **kwargs: Any):
    from sia.main import run_file as _run_file

    return _run_file(*args, **kwargs)


def __getattr__(name: str):
    if name == "Evaluator":
        from sia.evaluator import Evaluator

        return Evaluator
    if name == "SiaError":
        from sia.errors import SiaError

        return SiaError
    raise AttributeError(name)
