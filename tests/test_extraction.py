# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for pagescrape.extraction: one pass of the ruleset over containers.

Verifies:
1. Anchor-text gate: empty containers produce no Record
2. Missing-field policy: no match / no eligible match -> unset
3. First-match policy among eligible candidates
4. Whitespace-only match -> "" (set but empty)
5. Hidden-class exclusion end to end
6. query_selector_all mapping helper
"""

from __future__ import annotations

from pagescrape import Record
from pagescrape.extraction import extract, extract_field, query_selector_all
from tests._fake_page import FakeNode, FakePage, card, leaf, product

RULES = {"Title": ".t", "Price": ".p"}


# ── Anchor text ─────────────────────────────────────────────────────


class TestAnchorText:
    async def test_empty_container_skipped(self):
        page = FakePage({".card": [product("A", "1"), card(text="", t=leaf("ghost")), product("B", "2")]})
        records = await extract(page, ".card", RULES)
        assert [r["Title"] for r in records] == ["A", "B"]

    async def test_none_text_container_skipped(self):
        page = FakePage({".card": [FakeNode(text=None, children={".t": [leaf("x")]}), product("A", "1")]})
        records = await extract(page, ".card", RULES)
        assert len(records) == 1

    async def test_whitespace_anchor_still_counts(self):
        page = FakePage({".card": [card(text="  ", t=leaf("A"))]})
        records = await extract(page, ".card", RULES)
        assert records == [Record({"Title": "A"})]

    async def test_no_containers(self):
        assert await extract(FakePage(), ".card", RULES) == []

    async def test_skipped_container_fields_not_queried(self):
        empty = card(text="", t=leaf("x"))
        page = FakePage({".card": [empty]})
        await extract(page, ".card", RULES)
        texts_read = [c[1] for c in page.calls_named("inner_text")]
        assert texts_read == [empty]


# ── Field policies ──────────────────────────────────────────────────


class TestFieldPolicies:
    async def test_zero_matches_leaves_field_unset(self):
        page = FakePage({".card": [card(t=leaf("A"))]})
        (record,) = await extract(page, ".card", RULES)
        assert "Price" not in record
        assert record.get("Price") is None
        assert record["Title"] == "A"

    async def test_all_candidates_ineligible_leaves_field_unset(self):
        page = FakePage({".card": [card(text="A", t=[leaf("A", visible=False), leaf("B", cls="hidden")])]})
        (record,) = await extract(page, ".card", {"Title": ".t"})
        assert "Title" not in record

    async def test_first_eligible_candidate_wins(self):
        page = FakePage({".card": [card(p=[leaf("9,99 €"), leaf("12,50 €"), leaf("1,00 €")])]})
        (record,) = await extract(page, ".card", {"Price": ".p"})
        assert record["Price"] == "9,99 €"

    async def test_skips_ineligible_before_first(self):
        candidates = [leaf("old", cls="price hidden"), leaf("gone", visible=False), leaf("now"), leaf("later")]
        page = FakePage({".card": [card(text="x", p=candidates)]})
        (record,) = await extract(page, ".card", {"Price": ".p"})
        assert record["Price"] == "now"

    async def test_whitespace_only_match_is_empty_string(self):
        page = FakePage({".card": [card(text="x", t=leaf("  \n "))]})
        (record,) = await extract(page, ".card", {"Title": ".t"})
        assert "Title" in record
        assert record["Title"] == ""

    async def test_none_text_match_is_empty_string(self):
        page = FakePage({".card": [card(text="x", t=leaf(None))]})
        (record,) = await extract(page, ".card", {"Title": ".t"})
        assert record["Title"] == ""

    async def test_value_normalized(self):
        page = FakePage({".card": [card(p=leaf("Price:&nbsp;&nbsp;9,99&nbsp;€\n"))]})
        (record,) = await extract(page, ".card", {"Price": ".p"})
        assert record["Price"] == "Price: 9,99 €"

    async def test_fields_follow_rule_order(self):
        page = FakePage({".card": [product("A", "1")]})
        (record,) = await extract(page, ".card", {"Price": ".p", "Title": ".t"})
        assert list(record) == ["Price", "Title"]

    async def test_sub_selector_scoped_to_container(self):
        first = product("A", "1")
        second = card(p=leaf("2"))
        page = FakePage({".card": [first, second], ".t": [leaf("page-level title")]})
        records = await extract(page, ".card", RULES)
        assert "Title" not in records[1]

    async def test_extract_field_direct(self):
        page = FakePage()
        container = card(t=[leaf("A", cls="hidden"), leaf(" B ")])
        assert await extract_field(page, container, ".t") == "B"
        assert await extract_field(page, container, ".missing") is None


# ── End to end ──────────────────────────────────────────────────────


class TestEndToEnd:
    async def test_hidden_title_in_second_container(self):
        containers = [
            product("Manzana Golden", "2,49 €"),
            card(text="Pera Conferencia 1,99 €", t=leaf("Pera Conferencia", cls="title hidden"), p=leaf("1,99 €")),
            product("Manzana Fuji", "3,10 €"),
        ]
        page = FakePage({".search-product-card": containers})
        records = await extract(page, ".search-product-card", RULES)

        assert len(records) == 3
        assert records[0] == {"Title": "Manzana Golden", "Price": "2,49 €"}
        assert "Title" not in records[1]
        assert records[1]["Price"] == "1,99 €"
        assert records[2] == {"Title": "Manzana Fuji", "Price": "3,10 €"}

    async def test_document_order_preserved(self):
        titles = [f"P{i}" for i in range(10)]
        page = FakePage({".card": [product(t, "1") for t in titles]})
        records = await extract(page, ".card", RULES)
        assert [r["Title"] for r in records] == titles

    async def test_records_are_fresh_each_pass(self):
        page = FakePage({".card": [product("A", "1")]})
        first = await extract(page, ".card", RULES)
        page.selectors[".card"][0].children[".t"][0].text = "changed"
        second = await extract(page, ".card", RULES)
        assert first[0]["Title"] == "A"
        assert second[0]["Title"] == "changed"


# ── query_selector_all ──────────────────────────────────────────────


class TestQuerySelectorAll:
    async def test_maps_in_document_order(self):
        links = [leaf("a", href="/a"), leaf("b"), leaf("c", href="/c")]
        page = FakePage({"nav a": links})
        hrefs = await query_selector_all(page, "nav a", lambda node: page.get_attribute(node, "href"))
        assert hrefs == ["/a", None, "/c"]

    async def test_no_matches(self):
        page = FakePage()

        async def _text(node: FakeNode) -> str | None:
            return await page.inner_text(node)

        assert await query_selector_all(page, "nav a", _text) == []
