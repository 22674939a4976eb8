"""
HTTP tests for the API routers.

Requests go through the real JWT cookie authentication; only the database
session is overridden to use the in-memory test database.
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from leazr.api import api_router
from leazr.auth.jwt import COOKIE_NAME, create_access_token
from leazr.db import get_db
from leazr.models import Contract, OfferWorkflowStatus, User, UserRole
from leazr.utils.password import hash_password


class FakeRecomputer:
    def __init__(self):
        self.calls = []
        self.forgotten = []

    async def request(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return True

    async def forget(self, key):
        self.forgotten.append(key)


@pytest.fixture
def app(db_session):
    app = FastAPI()
    app.include_router(api_router)
    app.state.recomputer = FakeRecomputer()

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(client, admin_user):
    client.cookies.set(COOKIE_NAME, create_access_token(admin_user.id, "admin"))
    return client


@pytest_asyncio.fixture
async def ambassador_user(db_session):
    user = User(
        username="alex",
        password_hash="not-a-real-hash",
        role=UserRole.AMBASSADOR,
        display_name="Alex",
    )
    db_session.add(user)
    await db_session.commit()
    return user


EQUIPMENT = [{"title": "Laptop", "purchase_price": "1000", "quantity": 2, "margin": "10"}]
TWO_ITEMS = [
    {"title": "Laptop", "purchase_price": "1000", "margin": "10"},
    {"title": "Server", "purchase_price": "2000", "margin": "10"},
]


# ── health ────────────────────────────────────────────────


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_live(self, client):
        response = await client.get("/api/health/live")
        assert response.json() == {"status": "alive"}

    @pytest.mark.asyncio
    async def test_ready(self, client):
        response = await client.get("/api/health/ready")
        assert response.json() == {"status": "ready", "database": "connected"}


# ── auth ──────────────────────────────────────────────────


class TestAuth:
    @pytest.mark.asyncio
    async def test_me_requires_cookie(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        client.cookies.set(COOKIE_NAME, "not-a-jwt")
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_sets_cookie(self, client, db_session):
        db_session.add(
            User(
                username="clerk",
                password_hash=hash_password("s3cret"),
                role=UserRole.ADMIN,
                display_name="Clerk",
            )
        )
        await db_session.commit()

        response = await client.post("/api/auth/login", json={"username": "clerk", "password": "s3cret"})
        assert response.status_code == 200
        assert response.json()["role"] == "admin"
        assert COOKIE_NAME in response.cookies

        me = await client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["username"] == "clerk"

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, db_session):
        db_session.add(
            User(
                username="clerk",
                password_hash=hash_password("s3cret"),
                role=UserRole.ADMIN,
                display_name="Clerk",
            )
        )
        await db_session.commit()

        response = await client.post("/api/auth/login", json={"username": "clerk", "password": "nope"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_routes_reject_ambassadors(self, client, ambassador_user):
        client.cookies.set(COOKIE_NAME, create_access_token(ambassador_user.id, "ambassador"))
        response = await client.get("/api/contracts")
        assert response.status_code == 403


# ── leasers ───────────────────────────────────────────────


class TestLeasers:
    @pytest.mark.asyncio
    async def test_overlapping_ranges_are_rejected(self, admin_client):
        response = await admin_client.post(
            "/api/leasers",
            json={
                "name": "BNP",
                "ranges": [
                    {"min_amount": "0", "max_amount": "2500", "coefficient": "3.0"},
                    {"min_amount": "2000", "max_amount": "5000", "coefficient": "2.9"},
                ],
            },
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_keeps_range_order(self, admin_client):
        response = await admin_client.post(
            "/api/leasers",
            json={
                "name": "BNP",
                "ranges": [
                    {"min_amount": "2500.01", "max_amount": "5000", "coefficient": "2.9"},
                    {"min_amount": "0", "max_amount": "2500", "coefficient": "3.1"},
                ],
            },
        )
        assert response.status_code == 201
        ranges = response.json()["ranges"]
        assert [r["position"] for r in ranges] == [0, 1]
        assert Decimal(ranges[0]["min_amount"]) == Decimal("2500.01")

    @pytest.mark.asyncio
    async def test_coefficient_lookup(self, admin_client, leaser):
        response = await admin_client.get(f"/api/leasers/{leaser.id}/coefficient", params={"amount": "2500"})
        body = response.json()
        assert Decimal(body["coefficient"]) == Decimal("3.0")
        assert Decimal(body["range"]["max_amount"]) == Decimal("2500")

        response = await admin_client.get(f"/api/leasers/{leaser.id}/coefficient", params={"amount": "2500.01"})
        assert Decimal(response.json()["coefficient"]) == Decimal("3.5")

    @pytest.mark.asyncio
    async def test_coefficient_miss_is_null(self, admin_client, leaser):
        response = await admin_client.get(f"/api/leasers/{leaser.id}/coefficient", params={"amount": "10000.01"})
        assert response.status_code == 200
        body = response.json()
        assert body["coefficient"] is None
        assert body["range"] is None

    @pytest.mark.asyncio
    async def test_gaps(self, admin_client, leaser):
        response = await admin_client.get(f"/api/leasers/{leaser.id}/gaps")
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_unknown_leaser(self, admin_client):
        response = await admin_client.get("/api/leasers/999")
        assert response.status_code == 404


# ── pricing ───────────────────────────────────────────────


class TestPricing:
    @pytest.mark.asyncio
    async def test_toggle_without_coefficient_change(self, admin_client, leaser):
        locked = await admin_client.post("/api/pricing/quote", json={"equipment": EQUIPMENT})
        floating = await admin_client.post(
            "/api/pricing/quote", json={"equipment": EQUIPMENT, "adapt_monthly_payment": True}
        )

        assert locked.status_code == 200
        assert locked.json()["coefficient_changed"] is False
        assert Decimal(locked.json()["monthly_payment"]) == Decimal("66.00")
        assert Decimal(floating.json()["monthly_payment"]) == Decimal("66.00")

    @pytest.mark.asyncio
    async def test_toggle_with_coefficient_change(self, admin_client, leaser):
        locked = await admin_client.post("/api/pricing/quote", json={"equipment": TWO_ITEMS})
        floating = await admin_client.post(
            "/api/pricing/quote", json={"equipment": TWO_ITEMS, "adapt_monthly_payment": True}
        )

        assert locked.json()["coefficient_changed"] is True
        assert Decimal(locked.json()["monthly_payment"]) == Decimal("99.00")
        assert Decimal(locked.json()["margin_difference"]) == Decimal("471.43")
        assert Decimal(floating.json()["monthly_payment"]) == Decimal("115.50")

    @pytest.mark.asyncio
    async def test_quote_with_ambassador_commission(self, admin_client, leaser, ambassador):
        response = await admin_client.post(
            "/api/pricing/quote", json={"equipment": EQUIPMENT, "ambassador_id": ambassador.id}
        )
        body = response.json()
        assert Decimal(body["commission"]) == Decimal("220.00")
        assert body["commission_level_name"] == "Standard"

    @pytest.mark.asyncio
    async def test_level_without_ambassador(self, admin_client, leaser):
        response = await admin_client.post(
            "/api/pricing/quote", json={"equipment": EQUIPMENT, "commission_level_id": 1}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_leaser(self, admin_client, leaser):
        response = await admin_client.post("/api/pricing/quote", json={"leaser_id": 999, "equipment": EQUIPMENT})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_margin(self, admin_client, leaser):
        response = await admin_client.post(
            "/api/pricing/margin", json={"purchase_price": "1000", "target_monthly_payment": "66"}
        )
        body = response.json()
        assert Decimal(body["amount"]) == Decimal("1200.00")
        assert Decimal(body["percentage"]) == Decimal("120.00")


# ── commission levels ─────────────────────────────────────


class TestCommissionLevels:
    @pytest.mark.asyncio
    async def test_commission_for_amount(self, admin_client, commission_level):
        response = await admin_client.get(
            f"/api/commission-levels/{commission_level.id}/commission", params={"amount": "2200"}
        )
        body = response.json()
        assert Decimal(body["amount"]) == Decimal("220.00")
        assert body["level_name"] == "Standard"

    @pytest.mark.asyncio
    async def test_commission_outside_tiers_is_zero(self, admin_client, commission_level):
        response = await admin_client.get(
            f"/api/commission-levels/{commission_level.id}/commission", params={"amount": "30000"}
        )
        assert response.status_code == 200
        assert Decimal(response.json()["amount"]) == Decimal("0")
        assert response.json()["level_name"] == ""


# ── offers ────────────────────────────────────────────────


class TestOffers:
    async def _create(self, client, **extra):
        payload = {"client_name": "Acme SPRL", "equipment": EQUIPMENT}
        payload.update(extra)
        response = await client.post("/api/offers", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    @pytest.mark.asyncio
    async def test_create(self, admin_client, leaser):
        offer = await self._create(admin_client)

        assert offer["workflow_status"] == "draft"
        assert offer["status_info"]["label"] == "Draft"
        assert Decimal(offer["monthly_payment"]) == Decimal("66.00")
        assert len(offer["equipment"]) == 1

    @pytest.mark.asyncio
    async def test_create_rejects_empty_equipment(self, admin_client, leaser):
        response = await admin_client.post("/api/offers", json={"client_name": "Acme", "equipment": []})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_statuses(self, admin_client):
        response = await admin_client.get("/api/offers/statuses")
        assert len(response.json()) == len(OfferWorkflowStatus)

    @pytest.mark.asyncio
    async def test_unknown_offer(self, admin_client):
        assert (await admin_client.get("/api/offers/404")).status_code == 404
        response = await admin_client.post("/api/offers/404/status", json={"status": "sent"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_leaser_approval_converts_to_contract(self, admin_client, leaser):
        offer = await self._create(admin_client)

        response = await admin_client.post(
            f"/api/offers/{offer['id']}/status",
            json={"status": "leaser_approved", "reason": "Approved by Grenke"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["offer"]["converted_to_contract"] is True
        assert body["offer"]["status_info"]["id"] == "contract"
        assert body["contract_id"] is not None
        assert body["log"]["previous_status"] == "draft"
        assert body["log"]["new_status"] == "leaser_approved"
        assert body["log"]["user_name"] == "Admin"

        contracts = (await admin_client.get("/api/contracts")).json()
        assert [c["id"] for c in contracts] == [body["contract_id"]]

        # Converted offers leave the offer list and show up as contracts
        assert (await admin_client.get("/api/offers")).json() == []
        assert len((await admin_client.get("/api/offers", params={"converted": "true"})).json()) == 1

    @pytest.mark.asyncio
    async def test_invalid_transition_is_conflict(self, admin_client, leaser):
        offer = await self._create(admin_client)
        await admin_client.post(f"/api/offers/{offer['id']}/status", json={"status": "rejected"})

        response = await admin_client.post(f"/api/offers/{offer['id']}/status", json={"status": "sent"})
        assert response.status_code == 409

        logs = (await admin_client.get(f"/api/offers/{offer['id']}/logs")).json()
        assert [log["new_status"] for log in logs] == ["rejected", "draft"]

    @pytest.mark.asyncio
    async def test_info_request_round_trip(self, admin_client, leaser):
        offer = await self._create(admin_client)

        response = await admin_client.post(
            f"/api/offers/{offer['id']}/info-request", json={"requested_docs": ["ID card"]}
        )
        assert response.json()["offer"]["workflow_status"] == "info_requested"
        assert response.json()["offer"]["previous_status"] == "draft"

        response = await admin_client.post(
            f"/api/offers/{offer['id']}/info-response", json={"approve": True}
        )
        assert response.json()["offer"]["workflow_status"] == "leaser_review"
        assert response.json()["offer"]["previous_status"] is None

    @pytest.mark.asyncio
    async def test_converted_offer_cannot_be_edited(self, admin_client, leaser):
        offer = await self._create(admin_client)
        await admin_client.post(f"/api/offers/{offer['id']}/status", json={"status": "leaser_approved"})

        response = await admin_client.patch(f"/api/offers/{offer['id']}", json={"client_name": "Other"})
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_changing_ambassador_schedules_recompute(self, app, admin_client, leaser, ambassador):
        offer = await self._create(admin_client)

        response = await admin_client.patch(
            f"/api/offers/{offer['id']}", json={"ambassador_id": ambassador.id, "remarks": "Referred"}
        )
        assert response.status_code == 200
        assert response.json()["remarks"] == "Referred"

        calls = app.state.recomputer.calls
        assert len(calls) == 1
        assert calls[0][1] == {"target": offer["id"]}

    @pytest.mark.asyncio
    async def test_recompute_keeps_the_level_chosen_at_creation(
        self, app, admin_client, leaser, ambassador, commission_level
    ):
        offer = await self._create(
            admin_client, ambassador_id=ambassador.id, commission_level_id=commission_level.id
        )
        assert offer["commission_level_id"] == commission_level.id

        await admin_client.patch(f"/api/offers/{offer['id']}", json={"ambassador_id": ambassador.id})

        args, _ = app.state.recomputer.calls[0]
        assert args[1] == commission_level.id
        assert args[3] == ambassador.id

    @pytest.mark.asyncio
    async def test_clearing_ambassador_zeroes_commission(self, app, admin_client, leaser, ambassador):
        offer = await self._create(admin_client, ambassador_id=ambassador.id)
        assert Decimal(offer["commission"]) == Decimal("220.00")

        response = await admin_client.patch(f"/api/offers/{offer['id']}", json={"ambassador_id": None})

        assert response.status_code == 200
        assert response.json()["ambassador_id"] is None
        assert Decimal(response.json()["commission"]) == Decimal("0")
        assert app.state.recomputer.calls == []
        assert app.state.recomputer.forgotten == [offer["id"]]

    @pytest.mark.asyncio
    async def test_failed_contract_insert_still_answers(self, admin_client, leaser, monkeypatch):
        offer = await self._create(admin_client)

        async def contract_without_client(db, offer, leaser_name, leaser_logo, user_id):
            contract = Contract(
                offer_id=offer.id,
                client_name=None,
                leaser_name=leaser_name,
                monthly_payment=offer.monthly_payment,
                user_id=user_id,
            )
            db.add(contract)
            await db.flush()
            return contract

        monkeypatch.setattr("leazr.services.workflow.create_contract_from_offer", contract_without_client)
        response = await admin_client.post(
            f"/api/offers/{offer['id']}/status", json={"status": "leaser_approved"}
        )

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["contract_id"] is None
        assert "NOT NULL" in body["contract_error"]
        assert body["offer"]["workflow_status"] == "leaser_approved"
        assert body["offer"]["converted_to_contract"] is False
        assert body["log"]["new_status"] == "leaser_approved"
        assert (await admin_client.get("/api/contracts")).json() == []

    @pytest.mark.asyncio
    async def test_commission_status(self, admin_client, leaser):
        offer = await self._create(admin_client)

        response = await admin_client.patch(
            f"/api/offers/{offer['id']}/commission-status", json={"status": "paid"}
        )
        assert response.json()["commission_status"] == "paid"
        assert response.json()["commission_paid_at"] is not None

    @pytest.mark.asyncio
    async def test_delete(self, app, admin_client, leaser):
        offer = await self._create(admin_client)

        response = await admin_client.delete(f"/api/offers/{offer['id']}")
        assert response.json() == {"success": True}
        assert app.state.recomputer.forgotten == [offer["id"]]
        assert (await admin_client.get(f"/api/offers/{offer['id']}")).status_code == 404


class TestOfferVisibility:
    @pytest.mark.asyncio
    async def test_ambassador_only_sees_own_offers(self, client, offer, ambassador_user):
        client.cookies.set(COOKIE_NAME, create_access_token(ambassador_user.id, "ambassador"))

        assert (await client.get(f"/api/offers/{offer.id}")).status_code == 404
        assert (await client.get("/api/offers")).json() == []

        created = await client.post(
            "/api/offers", json={"client_name": "Own client", "equipment": EQUIPMENT}
        )
        assert created.status_code == 201
        listed = (await client.get("/api/offers")).json()
        assert [o["id"] for o in listed] == [created.json()["id"]]
