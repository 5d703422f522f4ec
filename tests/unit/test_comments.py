import pytest

import json_parser as jp
from json_tree import RecursiveWildcard

PLAIN = '{"a": {}, "b": {"c": [true, {"e": 42}]}}'

COMMENTED = (
    "// hello\n"
    " { \n"
    " // this is a test\n"
    ' "a": {}, "b": { "c": [true, { "e": 42 } ] } } // bli \n'
    "// bla"
)

EVERYWHERE = (
    "// lead\n"
    "{ // open\n"
    '"a" // key\n'
    ": // colon\n"
    "{} // value\n"
    ", // comma\n"
    '"b": {"c": [ // array\n'
    "true, // first\n"
    '{"e": 42 // number\n'
    "}]}}\n"
    "// tail"
)


def shape(tree):
    """Everything about a tree except source positions."""
    entries = [(e.kind, e.key, dict(e.value) if e.kind == "OBJECT" else e.value)
               for e in tree.entries]
    keys = [k.name for k in tree.keys]
    found = [(e.kind, e.key) for e in tree.value_at([RecursiveWildcard()])]
    return entries, keys, found


@pytest.mark.parametrize("text", [COMMENTED, EVERYWHERE])
def test_comments_do_not_change_the_tree(text):
    assert shape(jp.parse(text)) == shape(jp.parse(PLAIN))


def test_commented_document_queries():
    tree = jp.parse(COMMENTED)
    assert tree.value_at(["a"])[0].kind == "OBJECT"
    assert tree.value_at(["b", "c", 1, "e"])[0].value == 42


def test_comment_text_inside_strings_is_data():
    tree = jp.parse('{"url": "http://example.com" // real comment\n}')
    assert tree.value_at(["url"])[0].value == "http://example.com"
