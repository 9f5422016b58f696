"""
Tests for FileTagger on real extended attributes.

Skipped when the temporary filesystem has no user xattr support.
"""

import os

import pytest

from tagsys.errors import AlreadyTaggedError
from tagsys.xattrs import FileTagger

pytestmark = pytest.mark.xattr

NS = "user.tagsys-test.1000."


@pytest.fixture
def tagger():
    return FileTagger(NS)


@pytest.fixture
def doc(xattr_dir):
    path = xattr_dir / "doc.txt"
    path.write_text("hello")
    return path


class TestFileTagger:
    def test_attribute_name(self, tagger):
        assert tagger.attribute_name("urgent") == "user.tagsys-test.1000.urgent"

    def test_set_and_read(self, tagger, doc):
        tagger.set_tag(doc, "urgent")
        tagger.set_tag(doc, "later")
        assert tagger.read_tags(doc) == {"urgent", "later"}
        assert os.getxattr(doc, NS + "urgent") == b""

    def test_untagged_file(self, tagger, doc):
        assert tagger.read_tags(doc) == set()
        assert tagger.list_tags(doc) == []

    def test_set_twice_raises(self, tagger, doc):
        tagger.set_tag(doc, "urgent")
        with pytest.raises(AlreadyTaggedError, match="already tagged with 'urgent'"):
            tagger.set_tag(doc, "urgent")

    def test_other_namespaces_ignored(self, tagger, doc):
        os.setxattr(doc, "user.other.thing", b"1")
        os.setxattr(doc, "user.tagsys-test.1001.foreign", b"")
        os.setxattr(doc, NS.rstrip("."), b"")
        tagger.set_tag(doc, "mine")
        assert tagger.read_tags(doc) == {"mine"}

    def test_bare_namespace_key_is_not_a_tag(self, tagger, doc):
        os.setxattr(doc, NS, b"")
        assert tagger.read_tags(doc) == set()

    def test_remove(self, tagger, doc):
        tagger.set_tag(doc, "urgent")
        tagger.set_tag(doc, "later")
        tagger.remove_tag(doc, "urgent")
        assert tagger.read_tags(doc) == {"later"}

    def test_remove_absent_raises(self, tagger, doc):
        with pytest.raises(OSError):
            tagger.remove_tag(doc, "urgent")

    def test_clear(self, tagger, doc):
        os.setxattr(doc, "user.other.thing", b"1")
        for tag in ["a", "b", "c"]:
            tagger.set_tag(doc, tag)
        assert tagger.clear_tags(doc) == []
        assert tagger.read_tags(doc) == set()
        assert os.getxattr(doc, "user.other.thing") == b"1"

    def test_read_missing_file(self, tagger, xattr_dir):
        with pytest.raises(FileNotFoundError):
            tagger.read_tags(xattr_dir / "missing")
