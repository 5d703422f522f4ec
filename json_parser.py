# json_parser.py
# Bracket matcher and arena tree builder for JSON-with-comments, plus the
# file wrapper and command-line entry point.
#
# =============================================================================
#  PARSER IMPLEMENTATION: BRACKET MAP + FLAT SPAN WALK
# =============================================================================
#
# Parsing runs in two passes over one flat, comment-free token list:
#
# 1. match_brackets() pairs every `{`/`[` with its closer using two stacks.
#    Unmatched closers are ignored here; a missing entry in the map is what
#    the builder later reports as a missing brace.
# 2. The builder walks the interior of one span at a time. When it meets a
#    nested opener it looks the closer up in the map, recurses into that
#    span, and resumes right after the closer, so no token is visited twice.
#
# Children are appended to the entry arena before their parent, which makes
# the root object the last entry.
#
# The grammar is deliberately lenient: comma/colon alternation is not
# enforced. Only bracket mismatches, values with no key to live under, and
# excessive nesting are errors.
#
# Depth guard defaults to 512 nesting levels, well inside Python's default
# recursion limit, since the builder recurses once per level.
#
# =============================================================================

import argparse
import sys
from types import MappingProxyType
from typing import Dict, List, Optional, Sequence, Tuple, Union

from json_errors import (
    DepthLimitExceeded,
    FileNotFound,
    KeyResolutionError,
    MissingArrayBrace,
    MissingObjectBrace,
    ParseError,
)
from json_lexer import (
    ARRAY_CLOSE,
    ARRAY_OPEN,
    COLON,
    COMMA,
    OBJECT_CLOSE,
    OBJECT_OPEN,
    PRIMITIVE_KINDS,
    STRING,
    ZERO,
    Range,
    Token,
    format_token,
    lex,
    strip_comments,
)
from json_tree import ARRAY, OBJECT, Entry, Key, Tree, parse_path

# ---------------------------------------------------------------------------
# CONSTANTS AND TUNABLES
# ---------------------------------------------------------------------------
DEPTH_LIMIT_DEFAULT = 512   # Nesting levels, root object counts as 1
ENCODING_DEFAULT    = "utf-8"


# ---------------------------------------------------------------------------
# BRACKET MATCHING
# ---------------------------------------------------------------------------
def match_brackets(tokens: Sequence[Token]) -> Dict[int, int]:
    """
    Map each opener's token index to its closer's index.

    Objects and arrays use independent stacks. A closer with nothing to pop
    is skipped; the builder turns the resulting gap into an error.
    """
    pairs: Dict[int, int] = {}
    objects: List[int] = []
    arrays: List[int] = []
    for idx, tok in enumerate(tokens):
        kind = tok.kind
        if kind == OBJECT_OPEN:
            objects.append(idx)
        elif kind == OBJECT_CLOSE:
            if objects:
                pairs[objects.pop()] = idx
        elif kind == ARRAY_OPEN:
            arrays.append(idx)
        elif kind == ARRAY_CLOSE:
            if arrays:
                pairs[arrays.pop()] = idx
    return pairs


# ---------------------------------------------------------------------------
# TREE BUILDER
# ---------------------------------------------------------------------------
class _Builder:
    """
    Holds the arenas for a single parse. Not reused across parses.
    """

    def __init__(self, tokens: Sequence[Token], brackets: Dict[int, int], max_depth: int):
        self.tokens = tokens
        self.brackets = brackets
        self.max_depth = max_depth
        self.entries: List[Entry] = []
        self.keys: List[Key] = []

    def _span_range(self, open_idx: int, close_idx: int, open_kind: str, close_kind: str) -> Range:
        opener = self.tokens[open_idx]
        closer = self.tokens[close_idx]
        start = opener.range.start if opener.kind == open_kind else ZERO
        end = closer.range.end if closer.kind == close_kind else ZERO
        return Range(start, end)

    def _push(self, entry: Entry) -> int:
        self.entries.append(entry)
        return len(self.entries) - 1

    def _commit(self, container, key: Optional[int], rng: Range, kind: str, value, at):
        # Objects store under the current key; arrays append in order.
        if isinstance(container, list):
            container.append(self._push(Entry(None, rng, kind, value)))
            return
        if key is None:
            raise KeyResolutionError("value has no key to be stored under", at)
        container[self.keys[key].name] = (key, self._push(Entry(key, rng, kind, value)))

    def build(self, open_idx: int, close_idx: int, depth: int, is_object: bool):
        """
        Build the span tokens[open_idx..close_idx] and return (members, range)
        where members is a dict for objects and a list for arrays.
        """
        if is_object:
            rng = self._span_range(open_idx, close_idx, OBJECT_OPEN, OBJECT_CLOSE)
            container: Union[Dict[str, Tuple[int, int]], List[int]] = {}
        else:
            rng = self._span_range(open_idx, close_idx, ARRAY_OPEN, ARRAY_CLOSE)
            container = []

        expecting_key = True
        current_key: Optional[int] = None

        i = open_idx + 1
        while i < close_idx:
            tok = self.tokens[i]
            kind = tok.kind

            if kind == OBJECT_OPEN or kind == ARRAY_OPEN:
                nested_is_object = kind == OBJECT_OPEN
                end = self.brackets.get(i)
                if end is None or end >= close_idx:
                    if nested_is_object:
                        raise MissingObjectBrace("no matching '}' for '{'", tok.range.start)
                    raise MissingArrayBrace("no matching ']' for '['", tok.range.start)
                if depth + 1 > self.max_depth:
                    raise DepthLimitExceeded(f"nesting deeper than {self.max_depth}", tok.range.start)
                value, nested_range = self.build(i, end, depth + 1, nested_is_object)
                if nested_is_object:
                    self._commit(container, current_key, nested_range, OBJECT,
                                 MappingProxyType(value), tok.range.start)
                else:
                    self._commit(container, current_key, nested_range, ARRAY,
                                 tuple(value), tok.range.start)
                expecting_key = True
                i = end + 1
                continue

            if is_object and kind == COLON:
                expecting_key = False
            elif is_object and kind == COMMA:
                expecting_key = True
            elif is_object and kind == STRING and expecting_key:
                self.keys.append(Key(tok.value, tok.range))
                current_key = len(self.keys) - 1
            elif kind in PRIMITIVE_KINDS:
                self._commit(container, current_key, tok.range, tok.kind, tok.value, tok.range.start)
            i += 1

        return container, rng


def build_tree(tokens: Sequence[Token], *, max_depth: int = DEPTH_LIMIT_DEFAULT) -> Tree:
    """
    Build a Tree from comment-free tokens. The first token must open the
    root object and its closer must be found; anything after that closer is
    not looked at.
    """
    brackets = match_brackets(tokens)
    if not tokens:
        raise MissingObjectBrace("document is empty, expected '{'")
    first = tokens[0]
    if first.kind != OBJECT_OPEN:
        raise MissingObjectBrace(f"root must be an object, got {first.kind}", first.range.start)
    if 0 not in brackets:
        raise MissingObjectBrace("no matching close for root '{'", first.range.start)
    if max_depth < 1:
        raise DepthLimitExceeded(f"nesting deeper than {max_depth}", first.range.start)

    builder = _Builder(tokens, brackets, max_depth)
    try:
        members, rng = builder.build(0, brackets[0], 1, True)
    except RecursionError as exc:
        # max_depth set above what the interpreter stack allows
        raise DepthLimitExceeded(
            f"nesting too deep for the interpreter stack (max_depth={max_depth})",
            first.range.start,
        ) from exc
    builder.entries.append(Entry(None, rng, OBJECT, MappingProxyType(members)))
    return Tree(builder.entries, builder.keys)


# ---------------------------------------------------------------------------
# PUBLIC API
# ---------------------------------------------------------------------------
def parse(text: str, *, max_depth: int = DEPTH_LIMIT_DEFAULT) -> Tree:
    """
    Parse JSON-with-comments text into a Tree.

    Comments are dropped before the tree is built, so they never change it.
    Raises a ParseError subclass on the first problem found.
    """
    return build_tree(strip_comments(lex(text)), max_depth=max_depth)


def read_source(path: str, encoding: str = ENCODING_DEFAULT) -> str:
    """Whole-file read; every OS, decode or unknown-encoding failure becomes FileNotFound."""
    try:
        with open(path, "r", encoding=encoding) as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError, LookupError) as exc:
        raise FileNotFound(f"cannot read {path}: {exc}") from exc


def parse_file(path: str, *, encoding: str = ENCODING_DEFAULT,
               max_depth: int = DEPTH_LIMIT_DEFAULT) -> Tree:
    return parse(read_source(path, encoding), max_depth=max_depth)


# ---------------------------------------------------------------------------
# CLI ENTRYPOINT
# ---------------------------------------------------------------------------
def _fmt_range(rng: Range) -> str:
    start, end = rng
    return f"{start.line}:{start.char}-{end.line}:{end.char}"


def _fmt_entry(entry: Entry) -> str:
    if entry.kind == OBJECT:
        preview = "{%d keys}" % len(entry.value)
    elif entry.kind == ARRAY:
        preview = "[%d items]" % len(entry.value)
    else:
        preview = repr(entry.value)
    return f"{_fmt_range(entry.range).ljust(16)} {entry.kind.ljust(6)} {preview}"


def _cli(argv: List[str]):
    """
    Command-line interface.

    Exit code 0 on success, 1 on any parse, read or path-expression error.
    """
    ap = argparse.ArgumentParser(description="Position-annotated JSON tree inspector")
    ap.add_argument("file", help="JSON file (// comments allowed)")
    ap.add_argument("--debug", action="store_true", help="dump token stream and exit")
    ap.add_argument("--max-depth", type=int, default=DEPTH_LIMIT_DEFAULT)
    ap.add_argument("--encoding", default=ENCODING_DEFAULT)
    ap.add_argument("-q", "--query", action="append", default=[],
                    help="path expression such as 'b.c[1].e', '*' or '**' (repeatable)")
    ap.add_argument("--keys", action="store_true", help="print keys at each query instead of values")
    args = ap.parse_args(argv)

    try:
        data = read_source(args.file, args.encoding)
        if args.debug:
            for tok in lex(data):
                print(format_token(tok))
            return 0

        paths = [parse_path(expr) for expr in args.query]
        tree = parse(data, max_depth=args.max_depth)
    except (ParseError, ValueError) as exc:
        print(f"{exc.__class__.__name__}: {exc}", file=sys.stderr)
        return 1

    if not paths:
        print("OK")
        return 0

    for path in paths:
        if args.keys:
            for key in tree.keys_at(path):
                print(f"{_fmt_range(key.range).ljust(16)} {key.name}")
        else:
            for entry in tree.value_at(path):
                print(_fmt_entry(entry))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    return _cli(sys.argv[1:] if argv is None else argv)


# ---------------------------------------------------------------------------
# MAIN GUARD
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    sys.exit(main())
