"""Recovery of structured analysis documents from raw LLM replies

Vision models wrap their JSON in prose or markdown fences, stop at the token
limit in the middle of a string, or emit near-JSON with trailing commas, bare
keys and single quotes. ``parse_llm_response`` runs a chain of increasingly
aggressive repairs, each one a no-op on well-formed input:

    fence strip -> isolate object -> close truncation -> normalize
    -> parse (with one fallback repair) -> validate shape
"""
import json
import logging
import re
from typing import Any, Dict, List, Tuple

from ..errors import ParseFailure, ParseFailureKind

logger = logging.getLogger(__name__)

_OPENING_FENCE_RE = re.compile(r"^```[\w+-]*[ \t]*\r?\n?")
_CLOSING_FENCE_RE = re.compile(r"\r?\n?[ \t]*```\s*$")
_IDENTIFIER_RE = re.compile(r"[A-Za-z_]\w*")
_PARTIAL_UNICODE_ESCAPE_RE = re.compile(r"\\u[0-9a-fA-F]{0,3}$")
# "key": "left "middle" right" -> one value with escaped inner quotes
_SPLIT_VALUE_RE = re.compile(r'(":\s*)"([^"]*)"([^"]*)"([^"]*)"(?=\s*[,\]}])')
_STRING_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


class _JsonScanner:
    """Tracks string state and open containers while walking JSON-ish text"""

    def __init__(self):
        self.stack: List[str] = []
        self.in_string = False
        self.escaped = False
        self.key_string = False
        self.last_token = ""
        self.close_index = -1

    def feed(self, text: str) -> "_JsonScanner":
        for index, char in enumerate(text):
            if self.in_string:
                if self.escaped:
                    self.escaped = False
                elif char == "\\":
                    self.escaped = True
                elif char == '"':
                    self.in_string = False
                    self.last_token = '"'
                continue

            if char == '"':
                self.in_string = True
                self.key_string = bool(self.stack) and self.stack[-1] == "{" and self.last_token in ("{", ",")
            elif char in "{[":
                self.stack.append(char)
            elif char in "}]":
                if self.stack:
                    self.stack.pop()
                if not self.stack and self.close_index == -1:
                    self.close_index = index

            if not char.isspace():
                self.last_token = char
        return self

    @property
    def is_open(self) -> bool:
        return self.in_string or bool(self.stack)


def _string_end(text: str, start: int) -> int:
    """Index just past the double-quoted literal opening at ``start``"""
    index = start + 1
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == '"':
            return index + 1
        index += 1
    return len(text)


def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index].isspace():
        index += 1
    return index


def strip_code_fence(text: str) -> str:
    """Remove a leading ``` fence (optionally tagged) and its closing fence"""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPENING_FENCE_RE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def isolate_json_object(text: str) -> str:
    """
    Cut the JSON object out of any surrounding prose

    Takes the first ``{`` through the last ``}``. When the text does not end
    with ``}`` the object either closes early (a postamble follows) or never
    closes (truncated output), in which case everything from ``{`` is kept so
    the truncation repair can close it.

    Raises:
        ParseFailure: NO_JSON_FOUND when there is no ``{`` at all
    """
    start = text.find("{")
    if start == -1:
        raise ParseFailure(ParseFailureKind.NO_JSON_FOUND, "no JSON object in response")

    candidate = text[start:].rstrip()
    if candidate.endswith("}"):
        return candidate

    scanner = _JsonScanner().feed(candidate)
    if scanner.close_index != -1:
        return candidate[:scanner.close_index + 1]
    return candidate


def close_truncated_json(text: str) -> Tuple[str, bool]:
    """
    Synthesize the closers of output cut off mid-stream

    Closes an open string, completes a dangling key or colon with ``null``,
    then closes every open container innermost first.

    Returns:
        Tuple of (repaired text, whether anything was appended)
    """
    scanner = _JsonScanner().feed(text)
    if not scanner.is_open:
        return text, False

    repaired = text
    last_token = scanner.last_token
    if scanner.in_string:
        if scanner.escaped:
            repaired = repaired[:-1]
        repaired = _PARTIAL_UNICODE_ESCAPE_RE.sub("", repaired)
        repaired += '"'
        last_token = '"'

    if scanner.stack and scanner.stack[-1] == "{":
        if last_token == '"' and scanner.key_string:
            repaired = repaired.rstrip() + ": null"
        elif last_token == ":":
            repaired = repaired.rstrip() + " null"

    closers = "".join("]" if opener == "[" else "}" for opener in reversed(scanner.stack))
    return repaired + closers, True


def normalize_json_text(text: str) -> str:
    """
    Fix near-JSON outside of string literals

    Drops trailing commas before ``}``/``]``, quotes bare identifier keys and
    turns single-quoted strings into double-quoted ones. Double-quoted
    literals are copied through untouched.
    """
    out: List[str] = []
    index = 0
    last_token = ""
    length = len(text)

    while index < length:
        char = text[index]

        if char == '"':
            end = _string_end(text, index)
            out.append(text[index:end])
            index = end
            last_token = '"'
            continue

        if char == "'" and last_token in ("{", "[", ",", ":"):
            end = text.find("'", index + 1)
            if end != -1:
                inner = text[index + 1:end].replace('"', '\\"')
                out.append(f'"{inner}"')
                index = end + 1
                last_token = '"'
                continue

        if char == ",":
            lookahead = _skip_whitespace(text, index + 1)
            if lookahead < length and text[lookahead] in "}]":
                index += 1
                continue

        if last_token in ("{", ","):
            match = _IDENTIFIER_RE.match(text, index)
            if match:
                after = _skip_whitespace(text, match.end())
                if after < length and text[after] == ":":
                    out.append(f'"{match.group(0)}"')
                    index = match.end()
                    last_token = '"'
                    continue

        out.append(char)
        if not char.isspace():
            last_token = char
        index += 1

    return "".join(out)


def escape_control_characters(text: str) -> str:
    """Escape raw newlines and tabs that sit inside string literals"""
    out: List[str] = []
    index = 0
    while index < len(text):
        if text[index] != '"':
            out.append(text[index])
            index += 1
            continue
        end = _string_end(text, index)
        literal = text[index:end]
        for raw, escaped in _STRING_ESCAPES.items():
            literal = literal.replace(raw, escaped)
        out.append(literal)
        index = end
    return "".join(out)


def repair_string_values(text: str) -> str:
    """Fallback repairs for string values the model failed to escape"""
    repaired = escape_control_characters(text)
    return _SPLIT_VALUE_RE.sub(r'\1"\2\\"\3\\"\4"', repaired)


def _is_valid_item(item: Any) -> bool:
    return (
        isinstance(item, dict)
        and bool(item.get("sequence"))
        and bool(item.get("type"))
        and bool(item.get("original_text"))
    )


def validate_document(parsed: Any, truncated: bool = False) -> Dict[str, Any]:
    """
    Check the parsed reply has the analysis shape and fill in defaults

    Args:
        parsed: Decoded JSON value
        truncated: Whether closers were synthesized; the last item is then
            allowed to be incomplete and is dropped

    Returns:
        The same document with ``page_number`` and ``explanations`` defaulted

    Raises:
        ParseFailure: INVALID_SHAPE or INVALID_ITEM
    """
    if not isinstance(parsed, dict) or not isinstance(parsed.get("reading_order"), list):
        raise ParseFailure(ParseFailureKind.INVALID_SHAPE, "missing reading_order")

    if not parsed.get("page_number"):
        parsed["page_number"] = 1

    items = parsed["reading_order"]
    if truncated and items and not _is_valid_item(items[-1]):
        logger.warning(f"Dropping incomplete reading order item at index {len(items) - 1} (truncated response)")
        items.pop()

    for index, item in enumerate(items):
        if not _is_valid_item(item):
            raise ParseFailure(
                ParseFailureKind.INVALID_ITEM,
                f"Invalid reading order item at index {index}",
                index=index
            )
        if not item.get("explanations"):
            item["explanations"] = []

    return parsed


def parse_llm_response(raw: str) -> Dict[str, Any]:
    """
    Turn a raw completion into a validated analysis document

    Args:
        raw: Text returned by the LLM, nominally JSON

    Returns:
        Dict with ``page_number`` and ``reading_order`` keys

    Raises:
        ParseFailure: when no stage can produce a valid document
    """
    if not raw or not raw.strip():
        raise ParseFailure(ParseFailureKind.NO_JSON_FOUND, "empty response")

    text = isolate_json_object(strip_code_fence(raw))

    text, truncated = close_truncated_json(text)
    if truncated:
        logger.warning("JSON appears truncated, synthesized missing closers")

    text = normalize_json_text(text)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as first_error:
        logger.info("First JSON parse failed, trying to fix common issues...")
        try:
            parsed = json.loads(repair_string_values(text))
        except json.JSONDecodeError:
            raise ParseFailure(
                ParseFailureKind.UNPARSABLE_JSON,
                str(first_error),
                cause=first_error
            ) from first_error

    return validate_document(parsed, truncated)
