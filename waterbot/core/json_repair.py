"""
Tolerant parsing of model-generated JSON.

Two steps: ``repair_json`` turns near-valid text into valid JSON text
(code fences, surrounding prose, trailing commas, unquoted keys, single-quoted
strings, missing closing braces/brackets); ``parse_json_object`` repairs,
parses, and insists on a JSON object. Schema validation is the caller's job.
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
_STRING_RE = re.compile(r'("(?:[^"\\]|\\.)*(?:"|$))', re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_UNQUOTED_KEY_RE = re.compile(r'([{,]\s*)([A-Za-z_][A-Za-z0-9_\-]*)(\s*:)')
_SINGLE_QUOTED_RE = re.compile(r"'((?:[^'\\]|\\.)*)'")
_PY_LITERALS = {"True": "true", "False": "false", "None": "null"}
_PY_LITERAL_RE = re.compile(r"\b(True|False|None)\b")


def _outside_strings(text: str, fix) -> str:
    """Apply ``fix`` only to the parts of ``text`` that are not inside double-quoted strings."""
    parts = _STRING_RE.split(text)
    # re.split with one capture group: even indexes are outside strings
    return "".join(fix(p) if i % 2 == 0 else p for i, p in enumerate(parts))


def _fix_bare_tokens(segment: str) -> str:
    segment = _UNQUOTED_KEY_RE.sub(r'\1"\2"\3', segment)
    return _PY_LITERAL_RE.sub(lambda m: _PY_LITERALS[m.group(1)], segment)


def _strip_fences(text: str) -> str:
    match = _FENCE_RE.search(text)
    return match.group(1) if match else text


def _extract_object(text: str) -> str:
    """Drop prose before the first '{' and after the matching (or last) '}'."""
    start = text.find("{")
    if start < 0:
        return text
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    # Unbalanced: keep everything from the first brace and let _close_open fix it
    return text[start:]


def _close_open(text: str) -> str:
    """Append closers for any string, array, or object left open at the end of the text."""
    stack: list[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append("}" if ch == "{" else "]")
        elif ch in "}]" and stack and stack[-1] == ch:
            stack.pop()
    out = text.rstrip()
    if in_string:
        out += '"'
    out = out.rstrip().rstrip(",")
    return out + "".join(reversed(stack))


def repair_json(text: str) -> str:
    """Best-effort repair of near-valid JSON text. Does not validate the result."""
    out = _strip_fences(text or "").strip()
    out = _extract_object(out)
    if '"' not in out:
        out = _SINGLE_QUOTED_RE.sub(lambda m: '"' + m.group(1) + '"', out)
    out = _outside_strings(out, _fix_bare_tokens)
    out = _close_open(out)
    out = _outside_strings(out, lambda s: _TRAILING_COMMA_RE.sub(r"\1", s))
    return out


def parse_json_object(text: str) -> dict[str, Any]:
    """
    Parse model output into a dict, repairing it first when strict parsing fails.

    Raises ValueError if the text cannot be repaired into a JSON object.
    """
    raw = (text or "").strip()
    if not raw:
        raise ValueError("empty model output")
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        repaired = repair_json(raw)
        logger.debug("[json_repair] repaired=%r", repaired[:300])
        try:
            parsed = json.loads(repaired)
        except json.JSONDecodeError as e:
            raise ValueError(f"could not parse model output as JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed
