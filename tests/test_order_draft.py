"""Tests for the order draft builder."""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.models import OrderLineIn
from app.services.order_draft import OrderDraft


@pytest.fixture
def catalog():
    return {
        1: SimpleNamespace(id=1, designation="Ciment", unit_price=Decimal("1000"), stock_quantity=3),
        2: SimpleNamespace(id=2, designation="Sable", unit_price=Decimal("500"), stock_quantity=10),
        3: SimpleNamespace(id=3, designation="Fer", unit_price=Decimal("2500"), stock_quantity=0),
    }


class TestLines:
    def test_new_draft_has_one_empty_line(self, catalog):
        draft = OrderDraft(catalog)
        assert len(draft.lines) == 1
        line = draft.lines[0]
        assert line.article_id is None
        assert line.quantity == 1
        assert line.unit_price == 0

    def test_add_line_defaults_to_quantity_one(self, catalog):
        draft = OrderDraft(catalog)
        line_id = draft.add_line()
        assert draft.get_line(line_id).quantity == 1
        assert len(draft.lines) == 2

    def test_remove_line(self, catalog):
        draft = OrderDraft(catalog)
        first = draft.lines[0].line_id
        second = draft.add_line()
        draft.remove_line(second)
        assert [l.line_id for l in draft.lines] == [first]

    def test_remove_absent_line_is_noop(self, catalog):
        draft = OrderDraft(catalog)
        draft.remove_line(999)
        assert len(draft.lines) == 1

    def test_line_ids_are_not_reused(self, catalog):
        draft = OrderDraft(catalog)
        first = draft.lines[0].line_id
        draft.remove_line(first)
        assert draft.add_line() != first

    def test_select_client(self, catalog):
        draft = OrderDraft(catalog)
        draft.select_client(42)
        assert draft.client_id == 42


class TestClamping:
    def test_article_snapshots_price(self, catalog):
        draft = OrderDraft(catalog)
        line_id = draft.lines[0].line_id
        draft.set_line_article(line_id, 2)
        assert draft.get_line(line_id).unit_price == Decimal("500")

    def test_quantity_clamped_to_stock(self, catalog):
        draft = OrderDraft(catalog)
        line_id = draft.lines[0].line_id
        draft.set_line_article(line_id, 1)
        draft.set_line_quantity(line_id, 5)
        assert draft.get_line(line_id).quantity == 3

    def test_quantity_at_least_one_when_in_stock(self, catalog):
        draft = OrderDraft(catalog)
        line_id = draft.lines[0].line_id
        draft.set_line_article(line_id, 1)
        draft.set_line_quantity(line_id, -2)
        assert draft.get_line(line_id).quantity == 1

    def test_selecting_article_clamps_existing_quantity(self, catalog):
        draft = OrderDraft(catalog)
        line_id = draft.lines[0].line_id
        draft.set_line_quantity(line_id, 10)
        draft.set_line_article(line_id, 1)
        assert draft.get_line(line_id).quantity == 3

    def test_out_of_stock_forces_zero(self, catalog):
        draft = OrderDraft(catalog)
        line_id = draft.lines[0].line_id
        draft.set_line_article(line_id, 3)
        assert draft.get_line(line_id).quantity == 0
        draft.set_line_quantity(line_id, 1)
        assert draft.get_line(line_id).quantity == 0

    def test_no_article_has_no_upper_bound(self, catalog):
        draft = OrderDraft(catalog)
        line_id = draft.lines[0].line_id
        draft.set_line_quantity(line_id, 50)
        assert draft.get_line(line_id).quantity == 50
        draft.set_line_quantity(line_id, 0)
        assert draft.get_line(line_id).quantity == 1

    def test_non_numeric_quantity_defaults_to_one(self, catalog):
        draft = OrderDraft(catalog)
        line_id = draft.lines[0].line_id
        draft.set_line_quantity(line_id, "abc")
        assert draft.get_line(line_id).quantity == 1

    @pytest.mark.parametrize("requested", [-3, 0, 1, 2, 3, 4, 100])
    def test_quantity_always_within_stock(self, catalog, requested):
        draft = OrderDraft(catalog)
        line_id = draft.lines[0].line_id
        draft.set_line_article(line_id, 1)
        draft.set_line_quantity(line_id, requested)
        assert 0 <= draft.get_line(line_id).quantity <= 3

    def test_unknown_line_is_ignored(self, catalog):
        draft = OrderDraft(catalog)
        draft.set_line_article(999, 1)
        draft.set_line_quantity(999, 2)
        assert draft.lines[0].article_id is None


class TestTotal:
    def test_total_of_example_order(self, catalog):
        draft = OrderDraft({
            1: SimpleNamespace(unit_price=Decimal("1000"), stock_quantity=10),
            2: SimpleNamespace(unit_price=Decimal("500"), stock_quantity=10),
        })
        first = draft.lines[0].line_id
        draft.set_line_article(first, 1)
        draft.set_line_quantity(first, 2)
        second = draft.add_line()
        draft.set_line_article(second, 2)
        assert draft.compute_total() == Decimal("2500")

    def test_lines_without_article_do_not_count(self, catalog):
        draft = OrderDraft(catalog)
        draft.set_line_quantity(draft.lines[0].line_id, 7)
        assert draft.compute_total() == 0

    def test_total_follows_every_mutation(self, catalog):
        draft = OrderDraft(catalog)
        line_id = draft.lines[0].line_id
        draft.set_line_article(line_id, 2)
        draft.set_line_quantity(line_id, 4)
        assert draft.compute_total() == Decimal("2000")
        draft.remove_line(line_id)
        assert draft.compute_total() == 0

    def test_reset(self, catalog):
        draft = OrderDraft(catalog)
        draft.select_client(1)
        draft.set_line_article(draft.lines[0].line_id, 2)
        draft.reset()
        assert draft.client_id is None
        assert len(draft.lines) == 1
        assert draft.lines[0].article_id is None


class TestFromLines:
    def test_replays_entries(self, catalog):
        draft = OrderDraft.from_lines(
            catalog,
            7,
            [OrderLineIn(article_id=1, quantity=5), OrderLineIn(article_id=None, quantity=2)],
        )
        payload = draft.to_payload()
        assert payload["client_id"] == 7
        assert [l["quantity"] for l in payload["lines"]] == [3, 2]
        assert payload["total"] == Decimal("3000")

    def test_no_entries_keeps_default_line(self, catalog):
        draft = OrderDraft.from_lines(catalog, None, [])
        assert len(draft.lines) == 1
