"""
Integration tests for the order endpoints
"""

import re

import pytest
from sqlalchemy import func
from sqlalchemy.future import select

from conftest import auth_headers
from powdercoat.core.enums import OrderStatus
from powdercoat.models.audit import Audit
from powdercoat.models.notification import Notification
from powdercoat.models.order import Order
from powdercoat.models.quote import QuoteNegotiation
from powdercoat.models.status_history import OrderStatusHistory
from powdercoat.models.user import User
from powdercoat.services.lifecycle import set_status
from powdercoat.services.assignments import set_assignments
from powdercoat.services.orders import get_order

pytestmark = pytest.mark.api


async def count(db, model, *criteria):
    res = await db.execute(select(func.count(model.id)).where(*criteria))
    return res.scalar_one()


class TestSubmitOrder:

    async def test_client_submits_order(self, test_client, db, client_user, admin, valid_order_data):
        response = await test_client.post("/orders/", json=valid_order_data, headers=auth_headers(client_user))

        assert response.status_code == 200
        data = response.json()
        assert re.fullmatch(r"ORD-\d{8}-\d{4}", data["order_number"])
        assert data["status"] == "pending_quote"
        assert data["progress"] == 0
        assert data["user_id"] == client_user.id
        assert data["customization"]["color"] == "#1A1A1A"
        assert data["files"][0]["file_name"] == "frame.jpg"
        assert data["team_member_ids"] == []

        assert await count(db, Notification, Notification.user_id == admin.id, Notification.title == "New Order Received") == 1
        assert await count(db, Audit, Audit.endpoint == "create_order") == 1

    async def test_admin_cannot_submit(self, test_client, admin, valid_order_data):
        response = await test_client.post("/orders/", json=valid_order_data, headers=auth_headers(admin))
        assert response.status_code == 403

    async def test_missing_fields_rejected(self, test_client, client_user, valid_order_data):
        valid_order_data["project_name"] = "   "
        response = await test_client.post("/orders/", json=valid_order_data, headers=auth_headers(client_user))

        assert response.status_code == 400
        assert "project_name" in response.json()["detail"]

    async def test_quantity_must_be_positive(self, test_client, client_user, valid_order_data):
        valid_order_data["quantity"] = 0
        response = await test_client.post("/orders/", json=valid_order_data, headers=auth_headers(client_user))
        assert response.status_code == 400

    async def test_unauthenticated(self, test_client, valid_order_data):
        response = await test_client.post("/orders/", json=valid_order_data)
        assert response.status_code == 401

    async def test_idempotent_submission(self, test_client, db, client_user, admin, valid_order_data):
        headers = {**auth_headers(client_user), "Idempotency-Key": "frame-order-1"}

        first = await test_client.post("/orders/", json=valid_order_data, headers=headers)
        second = await test_client.post("/orders/", json=valid_order_data, headers=headers)

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert await count(db, Order) == 1


class TestVisibility:

    async def test_clients_see_only_their_orders(
        self, test_client, create_order_factory, client_user, other_client
    ):
        mine = await create_order_factory()
        theirs = await create_order_factory(owner=other_client)

        response = await test_client.get("/orders/", headers=auth_headers(client_user))
        assert [o["id"] for o in response.json()] == [mine.id]

        response = await test_client.get(f"/orders/{theirs.id}", headers=auth_headers(client_user))
        assert response.status_code == 403

    async def test_admin_sees_everything(self, test_client, create_order_factory, admin, other_client):
        await create_order_factory()
        await create_order_factory(owner=other_client)

        response = await test_client.get("/orders/", headers=auth_headers(admin))
        assert len(response.json()) == 2

    async def test_team_member_sees_assigned_orders(
        self, test_client, db, create_order_factory, make_member
    ):
        member = await make_member("Casey", "Coating")
        assigned = await create_order_factory()
        other = await create_order_factory()
        await set_assignments(db, assigned.id, [member.id])

        user = await db.get(User, member.user_id)
        response = await test_client.get("/orders/", headers=auth_headers(user))
        assert [o["id"] for o in response.json()] == [assigned.id]

        response = await test_client.get(f"/orders/{other.id}", headers=auth_headers(user))
        assert response.status_code == 403

    async def test_status_filter(self, test_client, db, create_order_factory, admin, notifier):
        queued = await create_order_factory()
        await create_order_factory()
        await set_status(db, queued, OrderStatus.QUEUED, admin, notifier)

        response = await test_client.get("/orders/?status=queued", headers=auth_headers(admin))
        assert [o["id"] for o in response.json()] == [queued.id]

    async def test_unknown_order(self, test_client, admin):
        response = await test_client.get("/orders/424242", headers=auth_headers(admin))
        assert response.status_code == 404


class TestAdminSave:

    async def test_save_quote_status_and_team_together(
        self, test_client, db, order, admin, make_member, notifier
    ):
        member = await make_member("Sam", "Sand Blasting", with_account=False)

        response = await test_client.put(
            f"/orders/{order.id}",
            json={
                "quoted_price": 5000,
                "status": "queued",
                "priority": "urgent",
                "team_member_ids": [member.id],
            },
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["quoted_price"] == 5000
        assert data["status"] == "queued"
        assert data["progress"] == 10
        assert data["priority"] == "urgent"
        assert data["team_member_ids"] == [member.id]
        assert [c["new_status"] for c in notifier.calls] == ["queued"]

        quotes = await test_client.get(f"/orders/{order.id}/quotes/", headers=auth_headers(admin))
        assert [q["quoted_price"] for q in quotes.json()] == [5000]

    async def test_unchanged_price_still_saves_fields(self, test_client, order, admin):
        headers = auth_headers(admin)
        await test_client.put(f"/orders/{order.id}", json={"quoted_price": 5000}, headers=headers)

        response = await test_client.put(
            f"/orders/{order.id}",
            json={"quoted_price": 5000, "additional_notes": "Customer drop-off Friday"},
            headers=headers,
        )

        assert response.json()["additional_notes"] == "Customer drop-off Friday"
        quotes = await test_client.get(f"/orders/{order.id}/quotes/", headers=headers)
        assert len(quotes.json()) == 1

    async def test_invalid_price_rejected(self, test_client, order, admin):
        response = await test_client.put(
            f"/orders/{order.id}", json={"quoted_price": -5}, headers=auth_headers(admin)
        )
        assert response.status_code == 422

    async def test_unknown_team_member(self, test_client, order, admin):
        response = await test_client.put(
            f"/orders/{order.id}", json={"team_member_ids": [9999]}, headers=auth_headers(admin)
        )
        assert response.status_code == 404

    async def test_unknown_team_member_writes_nothing(self, test_client, db, order, admin, client_user, notifier):
        response = await test_client.put(
            f"/orders/{order.id}",
            json={"quoted_price": 5000, "status": "completed", "priority": "urgent", "team_member_ids": [9999]},
            headers=auth_headers(admin),
        )

        assert response.status_code == 404
        reloaded = await get_order(db, order.id)
        assert reloaded.status == OrderStatus.PENDING_QUOTE
        assert reloaded.quoted_price is None
        assert str(reloaded.priority) == "high"
        assert await count(db, QuoteNegotiation, QuoteNegotiation.order_id == order.id) == 0
        assert await count(db, OrderStatusHistory, OrderStatusHistory.order_id == order.id) == 0
        assert await count(db, Notification, Notification.user_id == client_user.id) == 0
        assert notifier.calls == []

    async def test_status_change_is_published_once(self, test_client, order, admin, fake_redis):
        fake_redis.published.clear()

        await test_client.put(f"/orders/{order.id}", json={"status": "queued"}, headers=auth_headers(admin))

        assert [c for c, _ in fake_redis.published].count("changes:orders") == 1

    async def test_field_only_save_is_published(self, test_client, order, admin, fake_redis):
        fake_redis.published.clear()

        await test_client.put(f"/orders/{order.id}", json={"priority": "low"}, headers=auth_headers(admin))

        assert [c for c, _ in fake_redis.published] == ["changes:orders"]

    async def test_client_cannot_save(self, test_client, order, client_user):
        response = await test_client.put(
            f"/orders/{order.id}", json={"status": "completed"}, headers=auth_headers(client_user)
        )
        assert response.status_code == 403


class TestStatusEndpoints:

    async def test_status_change_and_history(self, test_client, order, admin, client_user):
        headers = auth_headers(admin)
        await test_client.post(f"/orders/{order.id}/status", json={"status": "queued"}, headers=headers)
        await test_client.post(f"/orders/{order.id}/status", json={"status": "coating"}, headers=headers)
        response = await test_client.post(
            f"/orders/{order.id}/status", json={"status": "delayed", "notes": "Powder backorder"}, headers=headers,
        )

        assert response.json()["progress"] == 50
        assert response.json()["progress_held"] is True

        history = await test_client.get(f"/orders/{order.id}/history", headers=auth_headers(client_user))
        assert history.status_code == 200
        entries = history.json()
        assert [e["status"] for e in entries] == ["delayed", "coating", "queued"]
        assert entries[0]["notes"] == "Powder backorder"

    async def test_invalid_status(self, test_client, order, admin):
        response = await test_client.post(
            f"/orders/{order.id}/status", json={"status": "painting"}, headers=auth_headers(admin)
        )
        assert response.status_code == 422

    async def test_advance_via_api(self, test_client, db, order, admin, make_member, notifier):

        blaster = await make_member("Sam", "Sand Blasting")
        coater = await make_member("Casey", "Coating")
        await set_status(db, order, OrderStatus.SAND_BLASTING, admin, notifier)
        await set_assignments(db, order.id, [blaster.id])

        response = await test_client.post(
            f"/orders/{order.id}/advance", headers=auth_headers(await db.get(User, blaster.user_id)),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "coating"
        assert response.json()["team_member_ids"] == [coater.id]

        response = await test_client.post(
            f"/orders/{order.id}/advance", headers=auth_headers(await db.get(User, blaster.user_id)),
        )
        assert response.status_code == 403


class TestStats:

    async def test_stats(self, test_client, db, create_order_factory, admin, client_user, notifier):
        from powdercoat.services.quotes import record_quote, accept_offer

        approved = await create_order_factory()
        await create_order_factory()
        await record_quote(db, approved, admin, 5000)
        await accept_offer(db, approved, client_user, 5000, notifier)

        response = await test_client.get("/orders/stats", headers=auth_headers(admin))

        assert response.status_code == 200
        data = response.json()
        assert data["total_orders"] == 2
        assert data["pending_quote"] == 1
        assert data["by_status"] == {"pending_quote": 1, "queued": 1}
        assert data["monthly_revenue"] == 5000

    async def test_stats_admin_only(self, test_client, client_user):
        response = await test_client.get("/orders/stats", headers=auth_headers(client_user))
        assert response.status_code == 403
