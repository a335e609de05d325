"""Tests for the file -> tag ids index."""

from tagger.catalog import TagCatalog
from tagger.file_index import FileEntry, FileIndex


class TestAddTags:
    def test_creates_entry(self):
        index = FileIndex()
        entry = index.add_tags("/doc.txt", [1])
        assert entry == FileEntry(hash="", tags=[1])
        assert "/doc.txt" in index

    def test_appends_in_order(self):
        index = FileIndex()
        index.add_tags("/doc.txt", [3, 1])
        index.add_tags("/doc.txt", [2])
        assert index.entry_of("/doc.txt").tags == [3, 1, 2]

    def test_red_then_blue(self):
        catalog = TagCatalog()
        index = FileIndex()
        index.add_tags("/doc.txt", [catalog.lookup_or_create("red")])
        index.add_tags("/doc.txt", [catalog.lookup_or_create("blue")])

        assert index.files_with_tag(catalog.id_of("red")) == ["/doc.txt"]
        assert len(index.entry_of("/doc.txt").tags) == 2

    def test_same_tag_twice_appends_twice(self):
        catalog = TagCatalog()
        index = FileIndex()
        red = catalog.lookup_or_create("red")
        index.add_tags("/doc.txt", [red])
        index.add_tags("/doc.txt", [catalog.lookup_or_create("red")])
        assert index.entry_of("/doc.txt").tags == [red, red]

    def test_dedupe_skips_present_ids(self):
        index = FileIndex()
        index.add_tags("/doc.txt", [1], dedupe=True)
        index.add_tags("/doc.txt", [1, 2, 2], dedupe=True)
        assert index.entry_of("/doc.txt").tags == [1, 2]

    def test_empty_tag_list_still_creates_entry(self):
        index = FileIndex()
        index.add_tags("/doc.txt", [])
        assert index.entry_of("/doc.txt") == FileEntry()


class TestQueries:
    def test_entry_of_missing(self):
        assert FileIndex().entry_of("/doc.txt") is None

    def test_files_with_tag_sorted(self):
        index = FileIndex()
        index.add_tags("/z.txt", [1])
        index.add_tags("/a.txt", [1, 2])
        index.add_tags("/m.txt", [2])
        assert index.files_with_tag(1) == ["/a.txt", "/z.txt"]
        assert index.files_with_tag(2) == ["/a.txt", "/m.txt"]

    def test_files_with_tag_lists_duplicates_once(self):
        index = FileIndex()
        index.add_tags("/doc.txt", [1, 1, 1])
        assert index.files_with_tag(1) == ["/doc.txt"]

    def test_files_with_unknown_tag(self):
        index = FileIndex()
        index.add_tags("/doc.txt", [1])
        assert index.files_with_tag(9) == []

    def test_paths_and_len(self):
        index = FileIndex({"/b": FileEntry(tags=[1]), "/a": FileEntry()})
        assert index.paths() == ["/a", "/b"]
        assert len(index) == 2
