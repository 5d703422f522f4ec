import pytest

import json_parser as jp
from json_tree import (
    ARRAY,
    BOOL,
    INT,
    OBJECT,
    ArrayIndex,
    ObjectKey,
    RecursiveWildcard,
    Tree,
    Wildcard,
    parse_path,
)

DOC = '{"a":{},"b":{"c":[true,{"e":42}]}}'


@pytest.fixture
def tree():
    return jp.parse(DOC)


def test_object_key_on_empty_object(tree):
    res = tree.value_at([ObjectKey("a")])
    assert len(res) == 1
    assert res[0].kind == OBJECT
    assert tree.keys_at([ObjectKey("a")]) == []


def test_nested_lookup(tree):
    res = tree.value_at([ObjectKey("b"), ObjectKey("c"), ArrayIndex(1), ObjectKey("e")])
    assert [(e.kind, e.value) for e in res] == [(INT, 42)]


def test_wildcard_then_key(tree):
    res = tree.value_at([Wildcard(), ObjectKey("c"), ArrayIndex(0)])
    assert [(e.kind, e.value) for e in res] == [(BOOL, True)]


def test_wildcard_then_deep_path(tree):
    res = tree.value_at([Wildcard(), ObjectKey("c"), ArrayIndex(1), ObjectKey("e")])
    assert [e.value for e in res] == [42]


def test_recursive_wildcard(tree):
    res = tree.value_at([RecursiveWildcard(), ArrayIndex(1), ObjectKey("e")])
    assert [(e.kind, e.value) for e in res] == [(INT, 42)]


def test_empty_path_is_root(tree):
    assert tree.value_at([]) == [tree.root]
    assert tree.value_at() == [tree.root]


def test_results_are_tree_entries(tree):
    res = tree.value_at([ObjectKey("b")])
    assert res[0] is tree.entries[tree.root.value["b"][1]]


def test_no_match_is_empty(tree):
    assert tree.value_at([ObjectKey("missing")]) == []
    assert tree.value_at([ObjectKey("b"), ArrayIndex(0)]) == []
    assert tree.value_at([ObjectKey("b"), ObjectKey("c"), ArrayIndex(2)]) == []
    assert tree.value_at([ObjectKey("b"), ObjectKey("c"), ArrayIndex(-1)]) == []
    assert tree.value_at([ObjectKey("b"), ObjectKey("c"), ArrayIndex(0), Wildcard()]) == []


def test_wildcard_replaces_candidates(tree):
    res = tree.value_at([Wildcard()])
    assert sorted(tree.key_of(e).name for e in res) == ["a", "b"]
    assert tree.root not in res


def test_wildcard_over_array_keeps_index_order():
    t = jp.parse('{"xs": [3, 1, 2]}')
    assert [e.value for e in t.value_at(["xs", Wildcard()])] == [3, 1, 2]


def test_recursive_wildcard_keeps_previous_candidates(tree):
    res = tree.value_at([RecursiveWildcard()])
    assert res[0] is tree.root
    # root + a, b, c, true, {e}, 42
    assert len(res) == len(tree.entries)
    assert set(map(id, res)) == set(map(id, tree.entries))


def test_recursive_wildcard_order():
    t = jp.parse('{"xs": [[1, 2], [3]]}')
    xs = t.value_at(["xs"])[0]
    res = t.value_at(["xs", RecursiveWildcard()])
    assert res[0] is xs
    assert [e.kind for e in res[1:3]] == [ARRAY, ARRAY]
    # direct children first, then depth first into each child
    assert [e.value for e in res[3:]] == [1, 2, 3]


def test_recursive_wildcard_on_primitive():
    t = jp.parse('{"n": 5}')
    res = t.value_at(["n", RecursiveWildcard()])
    assert [e.value for e in res] == [5]


def test_keys_at(tree):
    keys = tree.keys_at([])
    assert sorted(k.name for k in keys) == ["a", "b"]
    assert [k.name for k in tree.keys_at(["b"])] == ["c"]
    assert tree.keys_at(["b", "c"]) == []
    assert tree.keys_at(["b", "c", 0]) == []


def test_keys_at_across_wildcard(tree):
    keys = tree.keys_at([RecursiveWildcard()])
    assert sorted(k.name for k in keys) == ["a", "b", "c", "e"]


def test_keys_carry_ranges():
    text = '{\n  "name": "x"\n}'
    t = jp.parse(text)
    (key,) = t.keys_at([])
    assert key.range.slice(text) == "name"
    assert key.range.start.line == 1


def test_plain_str_and_int_steps(tree):
    assert tree.value_at(["b", "c", 1, "e"]) == tree.value_at(
        [ObjectKey("b"), ObjectKey("c"), ArrayIndex(1), ObjectKey("e")]
    )


def test_bad_step_type(tree):
    with pytest.raises(TypeError):
        tree.value_at([1.5])
    with pytest.raises(TypeError):
        tree.value_at([True])


def test_empty_tree_answers_nothing():
    assert Tree().value_at([]) == []
    assert Tree().keys_at([]) == []
    assert Tree().root is None


def test_parse_path():
    assert parse_path("b.c[1].e") == [ObjectKey("b"), ObjectKey("c"), ArrayIndex(1), ObjectKey("e")]
    assert parse_path("*.c[0]") == [Wildcard(), ObjectKey("c"), ArrayIndex(0)]
    assert parse_path("**[1].e") == [RecursiveWildcard(), ArrayIndex(1), ObjectKey("e")]
    assert parse_path('"a.b".c') == [ObjectKey("a.b"), ObjectKey("c")]
    assert parse_path("") == []
    assert parse_path("[0][1]") == [ArrayIndex(0), ArrayIndex(1)]


@pytest.mark.parametrize(
    "expr", ["a[x]", "a[", 'a."b', "a]", "a..b", "a*b", ".a", "a.", "***", "a.[0]", '"a"b']
)
def test_parse_path_rejects_garbage(expr):
    with pytest.raises(ValueError):
        parse_path(expr)


def test_parse_path_index_attaches_without_dot():
    assert parse_path("a[0].**") == [ObjectKey("a"), ArrayIndex(0), RecursiveWildcard()]
    assert parse_path("*[2]") == [Wildcard(), ArrayIndex(2)]


def test_whole_path_as_string_is_rejected(tree):
    with pytest.raises(TypeError):
        tree.value_at("ab")
    with pytest.raises(TypeError):
        tree.keys_at("b")


def test_parse_path_drives_queries(tree):
    res = tree.value_at(parse_path("**[1].e"))
    assert [e.value for e in res] == [42]
