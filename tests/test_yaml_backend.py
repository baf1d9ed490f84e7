from __future__ import annotations

import pytest

from layerconf.document import RawMapping, to_plain
from layerconf.errors import DecodeError
from layerconf.io.yaml_backend import decode


def test_decode_keeps_order_and_duplicates():
    doc = decode(b"foo: 1\nbar: 2\nfoo: 3\n")
    assert isinstance(doc, RawMapping)
    assert doc.keys() == ["foo", "bar", "foo"]
    assert doc.get("foo") == 1
    assert to_plain(doc) == {"foo": 3, "bar": 2}


def test_decode_nested_structures():
    doc = decode("http:\n  listeners:\n    - port: 80\n    - port: 443\n")
    assert to_plain(doc) == {"http": {"listeners": [{"port": 80}, {"port": 443}]}}


def test_decode_merge_keys():
    doc = decode("base: &b {a: 1}\nchild:\n  <<: *b\n  c: 2\n")
    assert to_plain(doc)["child"] == {"a": 1, "c": 2}


@pytest.mark.parametrize("data", [b"", b"   \n", b"# only a comment\n"])
def test_empty_input_is_none(data):
    assert decode(data) is None


def test_multiple_documents_rejected():
    with pytest.raises(DecodeError) as ei:
        decode(b"a: 1\n---\nb: 2\n")
    assert "single document" in str(ei.value)


def test_syntax_error_is_decode_error():
    with pytest.raises(DecodeError):
        decode(b"a: [1, 2\n")


def test_unsafe_tags_rejected():
    with pytest.raises(DecodeError):
        decode(b"a: !!python/object/apply:os.system ['true']\n")
