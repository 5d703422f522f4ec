# json_tree.py
# Immutable arena-backed document tree and the path query engine over it.
#
# =============================================================================
#  TREE LAYOUT
# =============================================================================
#
# Every parsed value is an Entry in one shared `entries` tuple; every object
# key occurrence is a Key in `keys`. Composite entries hold integer indices
# into `entries` instead of owning their children, and children are always
# appended before their parent, so the root is the last entry and no index
# ever points forward.
#
# Queries only read. Results are the tree's own Entry objects.
#
# =============================================================================

import re
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

from json_lexer import Range

# ---------------------------------------------------------------------------
# ENTRY KINDS
# ---------------------------------------------------------------------------
OBJECT = "OBJECT"
ARRAY  = "ARRAY"
STRING = "STRING"
INT    = "INT"
FLOAT  = "FLOAT"
BOOL   = "BOOL"
NULL   = "NULL"


# ---------------------------------------------------------------------------
# ARENA RECORDS
# ---------------------------------------------------------------------------
class Key(NamedTuple):
    """One `"name":` occurrence in the source."""
    name: str
    range: Range


class Entry(NamedTuple):
    """
    One parsed value.

    `key` is the index of the Key this value was stored under, or None for
    array elements and the root. `value` depends on `kind`:

    - OBJECT: read-only mapping name -> (key_index, entry_index)
    - ARRAY:  tuple of entry indices in source order
    - STRING: raw source text between the quotes
    - INT / FLOAT / BOOL: the Python value
    - NULL:   None
    """
    key: Optional[int]
    range: Range
    kind: str
    value: object


# ---------------------------------------------------------------------------
# PATH STEPS
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ObjectKey:
    name: str


@dataclass(frozen=True)
class ArrayIndex:
    index: int


@dataclass(frozen=True)
class Wildcard:
    """Every direct child of each candidate."""


@dataclass(frozen=True)
class RecursiveWildcard:
    """Every descendant of each candidate, added to the candidates."""


PathStep = Union[ObjectKey, ArrayIndex, Wildcard, RecursiveWildcard]


def _as_step(step) -> PathStep:
    # Plain str / int are shorthand for key and index lookups.
    if isinstance(step, (ObjectKey, ArrayIndex, Wildcard, RecursiveWildcard)):
        return step
    if isinstance(step, str):
        return ObjectKey(step)
    if isinstance(step, int) and not isinstance(step, bool):
        return ArrayIndex(step)
    raise TypeError(f"not a path step: {step!r}")


# ---------------------------------------------------------------------------
# TREE
# ---------------------------------------------------------------------------
class Tree:
    """
    Parsed document. Construct-once, read-many: both arenas are tuples and
    object members are read-only mappings, so sharing a Tree between threads
    for queries is safe.
    """

    __slots__ = ("entries", "keys")

    def __init__(self, entries: Iterable[Entry] = (), keys: Iterable[Key] = ()):
        self.entries: Tuple[Entry, ...] = tuple(entries)
        self.keys: Tuple[Key, ...] = tuple(keys)

    def __repr__(self):
        return f"Tree(entries={len(self.entries)}, keys={len(self.keys)})"

    @property
    def root(self) -> Optional[Entry]:
        return self.entries[-1] if self.entries else None

    def key_of(self, entry: Entry) -> Optional[Key]:
        return None if entry.key is None else self.keys[entry.key]

    def children(self, entry: Entry) -> List[Entry]:
        """Direct children; object member order is not guaranteed."""
        if entry.kind == OBJECT:
            return [self.entries[idx] for _, idx in entry.value.values()]
        if entry.kind == ARRAY:
            return [self.entries[idx] for idx in entry.value]
        return []

    # -- step handlers ------------------------------------------------------

    def _by_key(self, candidates: Sequence[Entry], name: str) -> List[Entry]:
        found = []
        for entry in candidates:
            if entry.kind == OBJECT and name in entry.value:
                found.append(self.entries[entry.value[name][1]])
        return found

    def _by_index(self, candidates: Sequence[Entry], index: int) -> List[Entry]:
        found = []
        for entry in candidates:
            if entry.kind == ARRAY and 0 <= index < len(entry.value):
                found.append(self.entries[entry.value[index]])
        return found

    def _wildcard(self, candidates: Sequence[Entry]) -> List[Entry]:
        found = []
        for entry in candidates:
            found.extend(self.children(entry))
        return found

    def _descendants(self, candidates: Sequence[Entry]) -> List[Entry]:
        # Each candidate's direct children first, then their descendants.
        found = []
        for entry in candidates:
            children = self.children(entry)
            if children:
                found.extend(children)
                found.extend(self._descendants(children))
        return found

    # -- public queries -----------------------------------------------------

    def value_at(self, path: Iterable = ()) -> List[Entry]:
        """
        Evaluate `path` from the root and return the matching entries.

        Steps are applied left to right: ObjectKey and ArrayIndex filter and
        descend, Wildcard replaces the candidates with their children, and
        RecursiveWildcard appends every descendant to the candidates it was
        given. A path that matches nothing returns an empty list.
        """
        if isinstance(path, str):
            raise TypeError("path must be a sequence of steps; use parse_path() for expressions")
        if not self.entries:
            return []
        candidates = [self.entries[-1]]
        for raw in path:
            step = _as_step(raw)
            if isinstance(step, ObjectKey):
                candidates = self._by_key(candidates, step.name)
            elif isinstance(step, ArrayIndex):
                candidates = self._by_index(candidates, step.index)
            elif isinstance(step, Wildcard):
                candidates = self._wildcard(candidates)
            else:
                candidates = candidates + self._descendants(candidates)
        return candidates

    def keys_at(self, path: Iterable = ()) -> List[Key]:
        """Key records owned by every object that `path` resolves to."""
        found = []
        for entry in self.value_at(path):
            if entry.kind == OBJECT:
                found.extend(self.keys[key_idx] for key_idx, _ in entry.value.values())
        return found


# ---------------------------------------------------------------------------
# PATH EXPRESSIONS
# ---------------------------------------------------------------------------
# Dotted syntax: a.b[0].*.** with "quoted" names for keys holding dots,
# brackets or stars. Quoted names are matched verbatim, like the keys.
_PATH_RE = re.compile(
    r"(?P<RECURSIVE>\*\*)|"
    r"(?P<WILDCARD>\*)|"
    r"\[(?P<INDEX>\d+)\]|"
    r'"(?P<QUOTED>(?:[^"\\]|\\.)*)"|'
    r'(?P<NAME>[^.\[\]"*]+)|'
    r"(?P<DOT>\.)"
)


def parse_path(expr: str) -> List[PathStep]:
    """
    Turn a path expression into steps.

    Named and wildcard steps are separated by `.`; `[n]` attaches directly
    to the step before it or opens the path.

    >>> parse_path('b.c[1].e')
    [ObjectKey(name='b'), ObjectKey(name='c'), ArrayIndex(index=1), ObjectKey(name='e')]
    """
    steps: List[PathStep] = []
    pos = 0
    # None at the start, "step" after a step, "dot" after a separator
    prev: Optional[str] = None
    for m in _PATH_RE.finditer(expr):
        if m.start() != pos:
            raise ValueError(f"invalid path expression at offset {pos}")
        kind = m.lastgroup
        if kind == "DOT":
            if prev != "step":
                raise ValueError(f"unexpected '.' at offset {m.start()}")
            prev = "dot"
        elif kind == "INDEX":
            if prev == "dot":
                raise ValueError(f"index after '.' at offset {m.start()}")
            steps.append(ArrayIndex(int(m.group("INDEX"))))
            prev = "step"
        else:
            if prev == "step":
                raise ValueError(f"missing '.' before offset {m.start()}")
            if kind == "RECURSIVE":
                steps.append(RecursiveWildcard())
            elif kind == "WILDCARD":
                steps.append(Wildcard())
            else:
                steps.append(ObjectKey(m.group(kind)))
            prev = "step"
        pos = m.end()
    if pos != len(expr):
        raise ValueError(f"invalid path expression at offset {pos}")
    if prev == "dot":
        raise ValueError("path expression ends with '.'")
    return steps


__all__ = [
    "Tree",
    "Entry",
    "Key",
    "ObjectKey",
    "ArrayIndex",
    "Wildcard",
    "RecursiveWildcard",
    "PathStep",
    "parse_path",
    "OBJECT", "ARRAY", "STRING", "INT", "FLOAT", "BOOL", "NULL",
]
