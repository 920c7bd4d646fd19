"""Tests for order persistence."""

import random
import re
from datetime import datetime
from decimal import Decimal

import pytest
from sqlmodel import select

from app.errors import InsufficientStockError, InvalidTransitionError, MissingClientError, PersistenceError
from app.models import Document, Order, OrderLine, OrderLineIn, OrderStatus
from app.services import orders as order_service
from app.services.notifications import NotificationChannel, NotificationScope


def _count(session, model):
    return len(session.exec(select(model)).all())


@pytest.fixture
def setup(make_client, make_article):
    client = make_client()
    ciment = make_article(reference="CIM", designation="Ciment", unit_price="1000", stock_quantity=12)
    sable = make_article(reference="SAB", designation="Sable", unit_price="500", stock_quantity=3)
    return client, ciment, sable


class TestOrderNumber:
    def test_format(self):
        number = order_service.generate_order_number(datetime(2026, 3, 1), rng=random.Random(7))
        assert re.fullmatch(r"CMD-2026-\d{4}", number)

    def test_retries_on_collision(self, session, setup, monkeypatch):
        client, ciment, _ = setup
        numbers = iter(["CMD-2026-1111", "CMD-2026-1111", "CMD-2026-2222"])
        monkeypatch.setattr(order_service, "generate_order_number", lambda *a, **k: next(numbers))

        first = order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id)])
        second = order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id)])
        assert first.order_number == "CMD-2026-1111"
        assert second.order_number == "CMD-2026-2222"

    def test_gives_up_after_attempts(self, session, setup, monkeypatch):
        client, ciment, _ = setup
        monkeypatch.setattr(order_service, "generate_order_number", lambda *a, **k: "CMD-2026-1111")
        order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id)])
        with pytest.raises(PersistenceError):
            order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id)])


class TestSubmit:
    def test_total_is_recomputed_from_catalog(self, session, setup):
        client, ciment, sable = setup
        order = order_service.submit(
            session,
            client.id,
            [OrderLineIn(article_id=ciment.id, quantity=2), OrderLineIn(article_id=sable.id, quantity=1)],
        )
        assert order.total_amount == Decimal("2500")
        assert order.status == "en_attente"
        assert [l.quantity for l in order.lines] == [2, 1]
        assert _count(session, OrderLine) == 2

    def test_empty_lines_are_dropped(self, session, setup):
        client, ciment, _ = setup
        order = order_service.submit(
            session,
            client.id,
            [OrderLineIn(article_id=None, quantity=3), OrderLineIn(article_id=ciment.id, quantity=1)],
        )
        assert len(order.lines) == 1

    def test_pending_order_keeps_stock(self, session, setup):
        client, ciment, _ = setup
        order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id, quantity=4)])
        session.refresh(ciment)
        assert ciment.stock_quantity == 12

    def test_validated_order_decrements_stock(self, session, setup):
        client, ciment, sable = setup
        order_service.submit(
            session,
            client.id,
            [OrderLineIn(article_id=ciment.id, quantity=4), OrderLineIn(article_id=sable.id, quantity=3)],
            status=OrderStatus.VALIDEE,
        )
        session.refresh(ciment)
        session.refresh(sable)
        assert ciment.stock_quantity == 8
        assert sable.stock_quantity == 0

    def test_missing_client_writes_nothing(self, session, setup):
        _, ciment, _ = setup
        with pytest.raises(MissingClientError):
            order_service.submit(session, None, [OrderLineIn(article_id=ciment.id)])
        assert _count(session, Order) == 0

    def test_unknown_client(self, session, setup):
        _, ciment, _ = setup
        with pytest.raises(MissingClientError):
            order_service.submit(session, 999, [OrderLineIn(article_id=ciment.id)])

    def test_insufficient_stock_writes_nothing(self, session, setup):
        client, ciment, sable = setup
        with pytest.raises(InsufficientStockError):
            order_service.submit(
                session,
                client.id,
                [OrderLineIn(article_id=ciment.id, quantity=1), OrderLineIn(article_id=sable.id, quantity=5)],
            )
        assert _count(session, Order) == 0
        assert _count(session, OrderLine) == 0
        session.refresh(ciment)
        assert ciment.stock_quantity == 12

    def test_same_article_on_two_lines_cannot_exceed_stock(self, session, setup):
        client, _, sable = setup
        with pytest.raises(InsufficientStockError):
            order_service.submit(
                session,
                client.id,
                [OrderLineIn(article_id=sable.id, quantity=3), OrderLineIn(article_id=sable.id, quantity=3)],
            )
        assert _count(session, Order) == 0

    def test_same_article_on_two_lines_can_be_validated(self, session, setup):
        client, _, sable = setup
        order = order_service.submit(
            session,
            client.id,
            [OrderLineIn(article_id=sable.id, quantity=1), OrderLineIn(article_id=sable.id, quantity=2)],
        )
        order_service.update_status(session, order.id, OrderStatus.VALIDEE)
        session.refresh(sable)
        assert sable.stock_quantity == 0

    def test_notifies_admin(self, session, setup, notifier):
        client, ciment, sable = setup
        order_service.submit(
            session,
            client.id,
            [OrderLineIn(article_id=sable.id, quantity=1)],
            status=OrderStatus.VALIDEE,
            notifier=notifier,
        )
        counts = notifier.get_all(NotificationScope.ADMIN)
        assert counts[NotificationChannel.ORDERS.value] == 1
        # Sable passe à 2, sous le seuil critique
        assert counts[NotificationChannel.STOCKS.value] == 1


class TestStatus:
    def test_validation_decrements_stock(self, session, setup):
        client, ciment, _ = setup
        order = order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id, quantity=5)])
        order_service.update_status(session, order.id, OrderStatus.VALIDEE)
        session.refresh(ciment)
        assert ciment.stock_quantity == 7

    def test_delivery_after_validation(self, session, setup):
        client, ciment, _ = setup
        order = order_service.submit(
            session, client.id, [OrderLineIn(article_id=ciment.id)], status=OrderStatus.VALIDEE
        )
        order = order_service.update_status(session, order.id, OrderStatus.LIVREE)
        assert order.status == "livree"

    def test_cancel_pending(self, session, setup):
        client, ciment, _ = setup
        order = order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id)])
        order = order_service.update_status(session, order.id, OrderStatus.ANNULEE)
        assert order.status == "annulee"

    @pytest.mark.parametrize(
        "initial,target",
        [
            (OrderStatus.VALIDEE, OrderStatus.EN_ATTENTE),
            (OrderStatus.VALIDEE, OrderStatus.ANNULEE),
            (OrderStatus.EN_ATTENTE, OrderStatus.LIVREE),
        ],
    )
    def test_forbidden_transitions(self, session, setup, initial, target):
        client, ciment, _ = setup
        order = order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id)], status=initial)
        with pytest.raises(InvalidTransitionError):
            order_service.update_status(session, order.id, target)

    def test_validation_fails_when_stock_is_gone(self, session, setup):
        client, _, sable = setup
        pending = order_service.submit(session, client.id, [OrderLineIn(article_id=sable.id, quantity=3)])
        order_service.submit(
            session, client.id, [OrderLineIn(article_id=sable.id, quantity=2)], status=OrderStatus.VALIDEE
        )
        with pytest.raises(InsufficientStockError):
            order_service.update_status(session, pending.id, OrderStatus.VALIDEE)
        session.refresh(pending)
        assert pending.status == "en_attente"


class TestDelete:
    def test_removes_lines_and_documents(self, session, setup):
        client, ciment, sable = setup
        order = order_service.submit(
            session,
            client.id,
            [OrderLineIn(article_id=ciment.id), OrderLineIn(article_id=sable.id)],
        )
        session.add(Document(document_type="facture", order_id=order.id, file_url="https://files.test/a.pdf"))
        session.commit()

        order_service.delete(session, order.id)
        assert _count(session, Order) == 0
        assert _count(session, OrderLine) == 0
        assert _count(session, Document) == 0


class TestReading:
    def _orders(self, session, setup):
        client, ciment, _ = setup
        orders = []
        for _ in range(12):
            orders.append(order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id)]))
        return orders

    def test_to_read_enriches_lines(self, session, setup):
        client, ciment, _ = setup
        order = order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id, quantity=3)])
        read = order_service.to_read(order)
        assert read.client_name == "Client A"
        assert read.lines[0].article_reference == "CIM"
        assert read.lines[0].subtotal == Decimal("3000")

    def test_pagination(self, session, setup):
        self._orders(session, setup)
        orders = order_service.list_orders(session)
        page = order_service.search_orders(orders, page=2, page_size=10)
        assert page["total"] == 12
        assert page["total_pages"] == 2
        assert len(page["items"]) == 2

    def test_page_is_clamped(self, session, setup):
        self._orders(session, setup)
        page = order_service.search_orders(order_service.list_orders(session), page=9, page_size=10)
        assert page["page"] == 2

    def test_search_by_number_and_status(self, session, setup):
        orders = self._orders(session, setup)
        reads = order_service.list_orders(session)
        number = orders[0].order_number
        page = order_service.search_orders(reads, search=number.lower())
        assert [o.order_number for o in page["items"]] == [number]
        assert order_service.search_orders(reads, status="livree")["total"] == 0
        assert order_service.search_orders(reads, search="client a")["total"] == 12

    def test_qr_payload(self, session, setup):
        client, ciment, _ = setup
        order = order_service.submit(session, client.id, [OrderLineIn(article_id=ciment.id, quantity=2)])
        payload = order_service.qr_payload(order_service.to_read(order))
        assert payload["type"] == "COMMANDE"
        assert payload["numero_commande"] == order.order_number
        assert payload["client"] == "Client A"
        assert payload["montant_total"] == 2000.0
