# json_errors.py
# Error taxonomy for the position-annotated JSON tree parser.
#
# Every failure is a SyntaxError subclass so callers that only care about
# "did it parse" can catch one builtin type. The first error aborts the
# parse; no partial tree ever accompanies an exception.

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from json_lexer import Position


class ParseError(SyntaxError):
    """
    Base for every failure raised by lex(), parse() and parse_file().

    `position` is the source coordinate the error was detected at, or None
    when the failure is not tied to a location (file errors, empty input).
    """

    def __init__(self, message: str, position: Optional["Position"] = None):
        if position is not None:
            message = (
                f"{message} at line {position.line}, char {position.char} "
                f"(offset {position.idx})"
            )
        super().__init__(message)
        self.position = position


class InvalidType(ParseError):
    """Malformed number or true/false/null literal, or a stray character."""


class MissingObjectBrace(ParseError):
    """Unmatched `{`, or a document whose root is not an object."""


class MissingArrayBrace(ParseError):
    """Unmatched `[`."""


class KeyResolutionError(ParseError):
    """A value was committed inside an object before any key was read."""


class DepthLimitExceeded(ParseError):
    """Nesting went past the configured max_depth."""


class FileNotFound(ParseError):
    """The input file could not be read or decoded."""


__all__ = [
    "ParseError",
    "InvalidType",
    "MissingObjectBrace",
    "MissingArrayBrace",
    "KeyResolutionError",
    "DepthLimitExceeded",
    "FileNotFound",
]
