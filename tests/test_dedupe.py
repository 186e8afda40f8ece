# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for pagescrape.dedupe and the Record mapping type."""

from __future__ import annotations

import pytest

from pagescrape import Record
from pagescrape.dedupe import dedupe


class TestDedupe:
    def test_keeps_first_per_key(self):
        records = [
            Record({"Title": "A", "Price": "1"}),
            Record({"Title": "B", "Price": "2"}),
            Record({"Title": "A", "Price": "9"}),
        ]
        assert dedupe(records, "Title") == [
            {"Title": "A", "Price": "1"},
            {"Title": "B", "Price": "2"},
        ]

    def test_first_seen_order(self):
        records = [Record({"k": v}) for v in ["c", "a", "c", "b", "a"]]
        assert [r["k"] for r in dedupe(records, "k")] == ["c", "a", "b"]

    def test_later_duplicate_not_merged(self):
        first = Record({"Title": "A"})
        richer = Record({"Title": "A", "Price": "3"})
        (survivor,) = dedupe([first, richer], "Title")
        assert survivor is first
        assert "Price" not in survivor

    def test_missing_key_forms_one_bucket(self):
        records = [
            Record({"Price": "1"}),
            Record({"Title": "A"}),
            Record({"Price": "2"}),
        ]
        assert dedupe(records, "Title") == [{"Price": "1"}, {"Title": "A"}]

    def test_missing_key_distinct_from_empty_string(self):
        records = [Record({"Price": "1"}), Record({"Title": "", "Price": "2"}), Record({"Title": ""})]
        result = dedupe(records, "Title")
        assert [r.get("Price") for r in result] == ["1", "2"]

    def test_empty_input(self):
        assert dedupe([], "Title") == []

    def test_accepts_iterator(self):
        gen = (Record({"k": str(i % 2)}) for i in range(6))
        assert len(dedupe(gen, "k")) == 2


class TestRecord:
    def test_mapping_protocol(self):
        r = Record([("Title", "A"), ("Price", "")])
        assert r["Title"] == "A"
        assert len(r) == 2
        assert list(r) == ["Title", "Price"]

    def test_present_empty_vs_absent(self):
        r = Record({"Price": ""})
        assert "Price" in r
        assert "Title" not in r
        assert r.get("Title") is None

    def test_immutable(self):
        r = Record({"Title": "A"})
        with pytest.raises(TypeError):
            r["Title"] = "B"  # type: ignore[index]

    def test_source_dict_changes_do_not_leak(self):
        src = {"Title": "A"}
        r = Record(src)
        src["Title"] = "B"
        assert r["Title"] == "A"

    def test_to_dict_is_a_copy(self):
        r = Record({"Title": "A"})
        d = r.to_dict()
        d["Title"] = "B"
        assert r["Title"] == "A"

    def test_equality_with_dict_and_record(self):
        assert Record({"a": "1"}) == {"a": "1"}
        assert Record({"a": "1"}) == Record({"a": "1"})
        assert Record({"a": "1"}) != Record({"a": "2"})

    def test_repr(self):
        assert repr(Record({"a": "1"})) == "Record({'a': '1'})"
