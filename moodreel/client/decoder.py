"""Best-effort decoding of a JSON document that is still being streamed.

The LLM writes `{"recommendations": [{"title", "year", "reason"}, ...]}` one
token at a time. After every fragment the whole buffer is re-parsed with a
tolerant parser that recovers the longest prefix it can be sure of:

* an unterminated string is returned with its content so far;
* unterminated objects and arrays are returned with the members parsed so far;
* a number or literal touching the end of the buffer (`20`, `tr`) may still
  grow, so it is left out until something follows it;
* a key without a value yet is left out.

Only the decoder knows about any of this. Callers see a tuple of
`Recommendation`s whose length never decreases.
"""

import json
import re
from typing import Any

from moodreel.client.types import Recommendation
from moodreel.utils.logging import get_logger

logger = get_logger(__name__)

_WHITESPACE = " \t\n\r"
_NUMBER_CHARS = frozenset("0123456789+-.eE")
_NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_LITERALS = {"true": True, "false": False, "null": None}
_PARTIAL_UNICODE_ESCAPE = re.compile(r"(\\+)u[0-9a-fA-F]{0,3}$")


class _Missing:
    """A value whose type or extent cannot be known yet."""


_MISSING = _Missing()


class MalformedJSON(ValueError):
    """The buffer can never become valid JSON."""


def _loads_string(literal: str, position: int) -> str:
    try:
        return json.loads(literal, strict=False)
    except json.JSONDecodeError as e:
        raise MalformedJSON(f"bad string at {position}: {e.msg}") from e


class _PartialParser:
    """Recursive-descent parser that stops gracefully at the end of input."""

    def __init__(self, text: str, final: bool = False) -> None:
        self.text = text
        self.n = len(text)
        self.final = final

    def _skip_ws(self, i: int) -> int:
        while i < self.n and self.text[i] in _WHITESPACE:
            i += 1
        return i

    def parse(self, i: int = 0) -> Any:
        value, _, _ = self._value(i)
        return value

    def _value(self, i: int) -> tuple[Any, int, bool]:
        """Returns (value, next index, complete)."""
        i = self._skip_ws(i)
        if i >= self.n:
            return _MISSING, i, False

        c = self.text[i]
        if c == "{":
            return self._object(i)
        if c == "[":
            return self._array(i)
        if c == '"':
            return self._string(i)
        if c == "-" or c.isdigit():
            return self._number(i)
        if c in "tfn":
            return self._literal(i)
        raise MalformedJSON(f"unexpected {c!r} at {i}")

    def _string(self, i: int) -> tuple[str, int, bool]:
        j = i + 1
        while j < self.n:
            c = self.text[j]
            if c == "\\":
                j += 2
                continue
            if c == '"':
                return _loads_string(self.text[i : j + 1], i), j + 1, True
            j += 1

        raw = self.text[i + 1 :]
        trailing = len(raw) - len(raw.rstrip("\\"))
        if trailing % 2:
            raw = raw[:-1]
        match = _PARTIAL_UNICODE_ESCAPE.search(raw)
        if match and len(match.group(1)) % 2:
            raw = raw[: match.end(1) - 1]
        return _loads_string(f'"{raw}"', i), self.n, False

    def _number(self, i: int) -> tuple[Any, int, bool]:
        j = i
        while j < self.n and self.text[j] in _NUMBER_CHARS:
            j += 1
        if j >= self.n and not self.final:
            return _MISSING, self.n, False

        token = self.text[i:j]
        if not _NUMBER_RE.fullmatch(token):
            if j >= self.n:
                return _MISSING, self.n, False
            raise MalformedJSON(f"bad number {token!r} at {i}")
        return json.loads(token), j, True

    def _literal(self, i: int) -> tuple[Any, int, bool]:
        rest = self.text[i : i + 5]
        for word, value in _LITERALS.items():
            if rest.startswith(word):
                return value, i + len(word), True
            if i + len(rest) >= self.n and word.startswith(rest):
                return _MISSING, self.n, False
        raise MalformedJSON(f"bad literal at {i}")

    def _object(self, i: int) -> tuple[dict, int, bool]:
        result: dict[str, Any] = {}
        i += 1
        first = True
        while True:
            i = self._skip_ws(i)
            if i >= self.n:
                return result, i, False
            c = self.text[i]
            if c == "}":
                return result, i + 1, True
            if not first:
                if c == "]":
                    # Stray closer; a best-effort reader skips it.
                    i += 1
                    continue
                if c != ",":
                    raise MalformedJSON(f"expected ',' or '}}' at {i}")
                i = self._skip_ws(i + 1)
                if i >= self.n:
                    return result, i, False
                if self.text[i] == "}":
                    return result, i + 1, True
            first = False

            if self.text[i] != '"':
                raise MalformedJSON(f"expected key at {i}")
            key, i, key_complete = self._string(i)
            if not key_complete:
                return result, i, False

            i = self._skip_ws(i)
            if i >= self.n:
                return result, i, False
            if self.text[i] != ":":
                raise MalformedJSON(f"expected ':' at {i}")

            value, i, complete = self._value(i + 1)
            if value is _MISSING:
                return result, i, False
            result[key] = value
            if not complete:
                return result, i, False

    def _array(self, i: int) -> tuple[list, int, bool]:
        items: list[Any] = []
        i += 1
        first = True
        while True:
            i = self._skip_ws(i)
            if i >= self.n:
                return items, i, False
            c = self.text[i]
            if c == "]":
                return items, i + 1, True
            if not first:
                if c == "}":
                    i += 1
                    continue
                if c != ",":
                    raise MalformedJSON(f"expected ',' or ']' at {i}")
                i = self._skip_ws(i + 1)
                if i >= self.n:
                    return items, i, False
                if self.text[i] == "]":
                    return items, i + 1, True
            first = False

            value, i, complete = self._value(i)
            if value is _MISSING:
                return items, i, False
            items.append(value)
            if not complete:
                return items, i, False


def parse_partial_json(text: str, final: bool = False) -> Any:
    """Parse the recoverable prefix of `text`, starting at its first `{`.

    Leading prose or a markdown code fence is skipped. Returns None when
    nothing is decodable yet. Raises MalformedJSON when the text can never
    become valid JSON.
    """
    start = text.find("{")
    if start < 0:
        return None
    value = _PartialParser(text, final=final).parse(start)
    return None if value is _MISSING else value


def _coerce_year(value: Any) -> tuple[bool, int | None]:
    if value is None:
        return True, None
    if isinstance(value, bool):
        return False, None
    if isinstance(value, int):
        return True, value
    if isinstance(value, float) and value.is_integer():
        return True, int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return True, int(value.strip())
    return False, None


def to_recommendation(item: Any) -> Recommendation | None:
    """Build a Recommendation once title, year and reason are all present."""
    if not isinstance(item, dict):
        return None
    if not {"title", "year", "reason"} <= item.keys():
        return None

    title, reason = item["title"], item["reason"]
    if not isinstance(title, str) or not title.strip() or not isinstance(reason, str):
        return None
    ok, year = _coerce_year(item["year"])
    if not ok:
        return None
    return Recommendation(title=title.strip(), year=year, reason=reason)


def extract_recommendations(document: Any) -> tuple[Recommendation, ...] | None:
    """Recommendations from a decoded document, or None if it has no list yet."""
    if not isinstance(document, dict):
        return None
    items = document.get("recommendations")
    if not isinstance(items, list):
        return None
    recommendations = (to_recommendation(item) for item in items)
    return tuple(rec for rec in recommendations if rec is not None)


class IncrementalJSONDecoder:
    """Accumulates streamed text and re-decodes it after every fragment.

    Not safe for concurrent use; `feed` never awaits, so a single consumer
    loop calling it serially is all that is needed.
    """

    def __init__(self) -> None:
        self.buffer = ""
        self.recommendations: tuple[Recommendation, ...] = ()

    def feed(self, fragment: str) -> tuple[Recommendation, ...]:
        """Append `fragment` and return the best list decodable so far."""
        self.buffer += fragment
        return self._decode(final=False)

    def finish(self) -> tuple[Recommendation, ...]:
        """Decode once more knowing no more text will arrive."""
        return self._decode(final=True)

    def _decode(self, final: bool) -> tuple[Recommendation, ...]:
        try:
            document = parse_partial_json(self.buffer, final=final)
        except MalformedJSON as e:
            if final:
                logger.warning(f"Recommendation JSON is malformed, keeping last good list: {e}")
            else:
                logger.debug(f"Buffer not decodable yet: {e}")
            return self.recommendations

        decoded = extract_recommendations(document)
        if decoded is None:
            return self.recommendations
        if len(decoded) < len(self.recommendations):
            logger.debug(
                f"Decoded {len(decoded)} recommendations after having "
                f"{len(self.recommendations)}, keeping the longer list"
            )
            return self.recommendations

        self.recommendations = decoded
        return decoded
