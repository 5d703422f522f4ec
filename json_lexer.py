# json_lexer.py
# Character-level state machine turning JSON-with-comments text into tokens
# that carry exact source ranges.
#
# =============================================================================
#  LEXER DESIGN
# =============================================================================
#
# The lexer walks the text one character at a time with a single active
# state (NONE, STRING, NUMBER, BOOL, NULL, COMMENT). No regex is used here:
# every token needs a (line, char, idx) start and end, and the character
# loop keeps the three counters in lockstep with what was consumed.
#
# A number or literal is only known to be finished when the character after
# it arrives. That character is then handed back to the NONE dispatch so a
# closing brace or comma right after a value is not lost.
#
# Strings are kept verbatim: escapes are not decoded, so the token text is
# exactly the source slice between the quotes.
#
# =============================================================================

from typing import Iterator, List, NamedTuple, Optional

from json_errors import InvalidType

# ---------------------------------------------------------------------------
# TOKEN KINDS
# ---------------------------------------------------------------------------
STRING       = "STRING"
INT          = "INT"
FLOAT        = "FLOAT"
BOOL         = "BOOL"
NULL         = "NULL"
OBJECT_OPEN  = "OBJECT_OPEN"
OBJECT_CLOSE = "OBJECT_CLOSE"
ARRAY_OPEN   = "ARRAY_OPEN"
ARRAY_CLOSE  = "ARRAY_CLOSE"
COMMA        = "COMMA"
COLON        = "COLON"
COMMENT      = "COMMENT"

PRIMITIVE_KINDS = frozenset({STRING, INT, FLOAT, BOOL, NULL})

_STRUCTURAL = {
    "{": OBJECT_OPEN,
    "}": OBJECT_CLOSE,
    "[": ARRAY_OPEN,
    "]": ARRAY_CLOSE,
    ",": COMMA,
    ":": COLON,
}

_WHITESPACE   = " \t\r"
_DIGITS       = "0123456789"
_NUMBER_START = _DIGITS + "-"
_NUMBER_CHARS = _DIGITS + "."

_BOOL_WORDS = {"true": True, "false": False}
_NULL_WORDS = {"null": None}

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1

# Lexer states
_NONE    = "NONE"
_STRING  = "STRING"
_NUMBER  = "NUMBER"
_BOOL    = "BOOL"
_NULL    = "NULL"
_COMMENT = "COMMENT"


# ---------------------------------------------------------------------------
# SOURCE COORDINATES
# ---------------------------------------------------------------------------
class Position(NamedTuple):
    """
    A single source coordinate.

    `line` and `char` are zero-based and meant for humans; `char` resets at
    every newline. `idx` is the absolute offset into the text and the only
    field safe for slicing back into it.
    """
    line: int
    char: int
    idx: int

    def advance(self, count: int = 1) -> "Position":
        """Position `count` characters further along the same line."""
        return Position(self.line, self.char + count, self.idx + count)


ZERO = Position(0, 0, 0)


class Range(NamedTuple):
    """Half-open span [start, end)."""
    start: Position
    end: Position

    def slice(self, text: str) -> str:
        return text[self.start.idx:self.end.idx]


# ---------------------------------------------------------------------------
# TOKEN RECORD
# ---------------------------------------------------------------------------
class Token(NamedTuple):
    """
    Immutable token record: (kind, range, value).

    `value` is the decoded payload for primitives (raw text for STRING,
    int, float, bool or None) and the comment body for COMMENT. Structural
    tokens carry None.
    """
    kind: str
    range: Range
    value: object = None


# ---------------------------------------------------------------------------
# LITERAL DECODING
# ---------------------------------------------------------------------------
def _number_token(text: str, rng: Range) -> Token:
    """
    Integer first, float second. Integers that do not fit a signed 64-bit
    slot are read as floats instead.
    """
    try:
        value = int(text)
    except ValueError:
        value = None
    if value is not None and _INT64_MIN <= value <= _INT64_MAX:
        return Token(INT, rng, value)
    try:
        return Token(FLOAT, rng, float(text))
    except ValueError:
        raise InvalidType(f"invalid number {text!r}", rng.start) from None


def _check_literal_prefix(word: str, words, start: Position):
    if not any(candidate.startswith(word) for candidate in words):
        raise InvalidType(f"invalid literal {word!r}", start)


# ---------------------------------------------------------------------------
# LEXER
# ---------------------------------------------------------------------------
def lex(text: str) -> Iterator[Token]:
    """
    Single-pass generator producing tokens in source order, comments
    included. Raises InvalidType on a malformed number or literal and on any
    character that cannot start a token.
    """
    state = _NONE
    buf: List[str] = []
    start: Optional[Position] = None
    escaped = False
    line = 0
    char = 0

    for idx, ch in enumerate(text):
        pos = Position(line, char, idx)
        dispatch = False

        if state == _STRING:
            if escaped:
                escaped = False
                buf.append(ch)
            elif ch == "\\":
                escaped = True
                buf.append(ch)
            elif ch == '"':
                yield Token(STRING, Range(start, pos), "".join(buf))
                state = _NONE
            else:
                buf.append(ch)

        elif state == _COMMENT:
            if ch == "\n":
                yield Token(COMMENT, Range(start, pos), "".join(buf)[2:])
                state = _NONE
            else:
                buf.append(ch)

        elif state == _NUMBER:
            if ch in _NUMBER_CHARS:
                buf.append(ch)
            else:
                yield _number_token("".join(buf), Range(start, pos))
                state = _NONE
                dispatch = True

        elif state in (_BOOL, _NULL):
            words = _BOOL_WORDS if state == _BOOL else _NULL_WORDS
            word = "".join(buf)
            if word in words:
                yield Token(BOOL if state == _BOOL else NULL, Range(start, pos), words[word])
                state = _NONE
                dispatch = True
            else:
                buf.append(ch)
                _check_literal_prefix(word + ch, words, start)

        else:
            dispatch = True

        if dispatch:
            if ch == "\n" or ch in _WHITESPACE:
                pass
            elif ch in _STRUCTURAL:
                yield Token(_STRUCTURAL[ch], Range(pos, pos.advance()))
            elif ch == '"':
                state, buf, escaped, start = _STRING, [], False, pos.advance()
            elif ch in _NUMBER_START:
                state, buf, start = _NUMBER, [ch], pos
            elif ch in "tf":
                state, buf, start = _BOOL, [ch], pos
            elif ch == "n":
                state, buf, start = _NULL, [ch], pos
            elif ch == "/" and text.startswith("/", idx + 1):
                state, buf, start = _COMMENT, [ch], pos
            else:
                raise InvalidType(f"unexpected character {ch!r}", pos)

        if ch == "\n":
            line += 1
            char = 0
        else:
            char += 1

    # Flush whatever was still accumulating when the text ran out.
    end = Position(line, char, len(text))
    if state == _NUMBER:
        yield _number_token("".join(buf), Range(start, end))
    elif state in (_BOOL, _NULL):
        words = _BOOL_WORDS if state == _BOOL else _NULL_WORDS
        word = "".join(buf)
        if word not in words:
            raise InvalidType(f"incomplete literal {word!r}", start)
        yield Token(BOOL if state == _BOOL else NULL, Range(start, end), words[word])
    elif state == _COMMENT:
        yield Token(COMMENT, Range(start, end), "".join(buf)[2:])
    # An unterminated string yields nothing; the brace check reports it.


def strip_comments(tokens) -> List[Token]:
    """Drop COMMENT tokens; the tree builder never sees them."""
    return [tok for tok in tokens if tok.kind != COMMENT]


def format_token(tok: Token) -> str:
    """One-line dump used by the CLI --debug flag."""
    start, end = tok.range
    span = f"{start.line}:{start.char}-{end.line}:{end.char}"
    if tok.kind not in PRIMITIVE_KINDS and tok.kind != COMMENT:
        return f"{span.ljust(16)} {tok.kind}"
    return f"{span.ljust(16)} {tok.kind.ljust(12)} {tok.value!r}"


__all__ = [
    "Position",
    "Range",
    "Token",
    "ZERO",
    "lex",
    "strip_comments",
    "format_token",
    "STRING", "INT", "FLOAT", "BOOL", "NULL",
    "OBJECT_OPEN", "OBJECT_CLOSE", "ARRAY_OPEN", "ARRAY_CLOSE",
    "COMMA", "COLON", "COMMENT",
    "PRIMITIVE_KINDS",
]
