"""Relaxed JSON as typed into query editors.

Accepts strict JSON, then JSON5 (unquoted keys, single quotes, comments,
trailing commas). Mongo shell constructors are rewritten to extended-JSON
wrappers before parsing:

    ObjectId("...")       -> {"$oid": "..."}
    ISODate("...")        -> {"$date": "..."}
    NumberLong(5)         -> {"$numberLong": "5"}
    Timestamp(1, 2)       -> {"$timestamp": {"t": 1, "i": 2}}

Text inside strings and comments is never rewritten.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple

import json5


class RelaxedJsonError(ValueError):
    """Text is neither valid JSON nor valid JSON5."""


_STRING_WRAPPERS = {
    "ObjectId": "$oid",
    "ObjectID": "$oid",
    "ISODate": "$date",
    "Date": "$date",
    "UUID": "$uuid",
}

_NUMBER_WRAPPERS = {
    "NumberLong": "$numberLong",
    "NumberInt": "$numberInt",
    "NumberDecimal": "$numberDecimal",
    "NumberDouble": "$numberDouble",
}

SHELL_CONSTRUCTORS = frozenset(_STRING_WRAPPERS) | frozenset(_NUMBER_WRAPPERS) | {"Timestamp"}

_QUOTES = ("'", '"')


def parse_relaxed_json(text: str) -> Any:
    """Parse ``text`` as JSON, falling back to JSON5."""
    trimmed = text.strip()
    if not trimmed:
        raise RelaxedJsonError("Input is empty")

    prepared = preprocess_shell_syntax(trimmed)
    try:
        return json.loads(prepared)
    except ValueError:
        pass
    try:
        return json5.loads(prepared)
    except ValueError as exc:
        raise RelaxedJsonError(str(exc)) from exc


def preprocess_shell_syntax(text: str) -> str:
    out: List[str] = []
    i = 0
    n = len(text)
    quote: Optional[str] = None
    escape = False

    while i < n:
        ch = text[i]

        if quote is not None:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == quote:
                quote = None
            i += 1
            continue

        if text.startswith("//", i):
            end = text.find("\n", i)
            end = n if end == -1 else end
            out.append(text[i:end])
            i = end
            continue

        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            out.append(text[i:end])
            i = end
            continue

        if ch in _QUOTES:
            quote = ch
            out.append(ch)
            i += 1
            continue

        if ch.isalpha() or ch in "_$":
            start = i
            i += 1
            while i < n and (text[i].isalnum() or text[i] in "_$"):
                i += 1
            name = text[start:i]

            j = i
            while j < n and text[j].isspace():
                j += 1
            if j < n and text[j] == "(" and name in SHELL_CONSTRUCTORS:
                call = _parse_call_args(text, j)
                if call is not None:
                    end, args = call
                    replacement = _convert_constructor(name, args)
                    if replacement is not None:
                        out.append(replacement)
                        i = end
                        continue
            out.append(name)
            continue

        out.append(ch)
        i += 1

    return "".join(out)


def _parse_call_args(text: str, open_paren: int) -> Optional[Tuple[int, List[str]]]:
    """Return (index after the closing paren, split args) or None if unbalanced."""
    depth = 0
    quote: Optional[str] = None
    escape = False
    i = open_paren + 1

    while i < len(text):
        ch = text[i]
        if quote is not None:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            if depth == 0:
                return i + 1, _split_args(text[open_paren + 1:i])
            depth -= 1
        i += 1
    return None


def _split_args(args: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    escape = False
    start = 0

    for i, ch in enumerate(args):
        if quote is not None:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == quote:
                quote = None
            continue
        if ch in _QUOTES:
            quote = ch
        elif ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            part = args[start:i].strip()
            if part:
                parts.append(part)
            start = i + 1

    tail = args[start:].strip()
    if tail:
        parts.append(tail)
    return parts


def _loads_either(arg: str) -> Any:
    try:
        return json.loads(arg)
    except ValueError:
        pass
    try:
        return json5.loads(arg)
    except ValueError:
        return None


def _strip_quotes(arg: str) -> str:
    return arg.strip().strip("'\"")


def _arg_as_string(arg: str) -> str:
    value = _loads_either(arg)
    return value if isinstance(value, str) else _strip_quotes(arg)


def _arg_as_number_string(arg: str) -> str:
    value = _loads_either(arg)
    if isinstance(value, bool):
        return _strip_quotes(arg)
    if isinstance(value, (int, float, str)):
        return str(value)
    return _strip_quotes(arg)


def _arg_as_int(arg: str) -> Optional[int]:
    value = _loads_either(arg)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(_strip_quotes(arg))
    except ValueError:
        return None


def _convert_constructor(name: str, args: List[str]) -> Optional[str]:
    if name == "Timestamp":
        if len(args) < 2:
            return None
        t, inc = _arg_as_int(args[0]), _arg_as_int(args[1])
        if t is None or inc is None:
            return None
        return json.dumps({"$timestamp": {"t": t, "i": inc}})

    if not args:
        return None
    if name in _STRING_WRAPPERS:
        return json.dumps({_STRING_WRAPPERS[name]: _arg_as_string(args[0])})
    return json.dumps({_NUMBER_WRAPPERS[name]: _arg_as_number_string(args[0])})
