"""API tests for admin moderation and catalogue endpoints."""

import uuid

import pytest

pytestmark = pytest.mark.integration


async def create_offer(client, headers, title="Weekend brunch") -> dict:
    response = await client.post(
        "/api/v1/offers",
        json={"title": title, "description": "Brunch for two", "category_id": str(uuid.uuid4())},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestModerationAccess:
    async def test_merchant_cannot_moderate(self, api_client, merchant_headers):
        offer = await create_offer(api_client, merchant_headers)
        response = await api_client.post(
            f"/api/v1/admin/offers/{offer['id']}/approve", headers=merchant_headers
        )
        assert response.status_code == 403

    async def test_unknown_offer_404(self, api_client, admin_headers):
        response = await api_client.post(
            f"/api/v1/admin/offers/{uuid.uuid4()}/approve", headers=admin_headers
        )
        assert response.status_code == 404


class TestApproveReject:
    async def test_approve_pending(self, api_client, merchant_headers, admin_headers, admin_id):
        offer = await create_offer(api_client, merchant_headers)

        response = await api_client.post(
            f"/api/v1/admin/offers/{offer['id']}/approve", headers=admin_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "approved"
        assert data["reviewed_by"] == str(admin_id)

    async def test_approve_twice_is_idempotent(self, api_client, merchant_headers, admin_headers):
        offer = await create_offer(api_client, merchant_headers)
        url = f"/api/v1/admin/offers/{offer['id']}/approve"

        await api_client.post(url, headers=admin_headers)
        response = await api_client.post(url, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["state"] == "approved"

    async def test_reject_with_reason(self, api_client, merchant_headers, admin_headers):
        offer = await create_offer(api_client, merchant_headers)

        response = await api_client.post(
            f"/api/v1/admin/offers/{offer['id']}/reject",
            json={"reason": "Misleading price"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["state"] == "rejected"
        assert response.json()["rejection_reason"] == "Misleading price"
        assert response.json()["is_approved"] is False

    async def test_approve_rejected_returns_409(self, api_client, merchant_headers, admin_headers):
        offer = await create_offer(api_client, merchant_headers)
        await api_client.post(f"/api/v1/admin/offers/{offer['id']}/reject", headers=admin_headers)

        response = await api_client.post(
            f"/api/v1/admin/offers/{offer['id']}/approve", headers=admin_headers
        )
        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "INVALID_TRANSITION"
        assert detail["action"] == "approve"
        assert detail["current_state"] == "rejected"

    async def test_reject_approved_returns_409(self, api_client, merchant_headers, admin_headers):
        offer = await create_offer(api_client, merchant_headers)
        await api_client.post(f"/api/v1/admin/offers/{offer['id']}/approve", headers=admin_headers)

        response = await api_client.post(
            f"/api/v1/admin/offers/{offer['id']}/reject", headers=admin_headers
        )
        assert response.status_code == 409
        assert response.json()["detail"]["current_state"] == "approved"

    async def test_rejection_frees_quota(self, api_client, merchant_headers, admin_headers):
        offers = [await create_offer(api_client, merchant_headers) for _ in range(3)]
        body = {"title": "One more", "description": "x", "category_id": str(uuid.uuid4())}
        refused = await api_client.post("/api/v1/offers", json=body, headers=merchant_headers)
        assert refused.status_code == 402

        await api_client.post(f"/api/v1/admin/offers/{offers[0]['id']}/reject", headers=admin_headers)

        accepted = await api_client.post("/api/v1/offers", json=body, headers=merchant_headers)
        assert accepted.status_code == 201


class TestListOffers:
    async def test_filter_by_state(self, api_client, merchant_headers, admin_headers):
        approved = await create_offer(api_client, merchant_headers, title="Approved one")
        await create_offer(api_client, merchant_headers, title="Still pending")
        await api_client.post(
            f"/api/v1/admin/offers/{approved['id']}/approve", headers=admin_headers
        )

        response = await api_client.get(
            "/api/v1/admin/offers", params={"state": "pending"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert [o["title"] for o in response.json()] == ["Still pending"]

        everything = await api_client.get("/api/v1/admin/offers", headers=admin_headers)
        assert len(everything.json()) == 2

    async def test_invalid_state_is_422(self, api_client, admin_headers):
        response = await api_client.get(
            "/api/v1/admin/offers", params={"state": "archived"}, headers=admin_headers
        )
        assert response.status_code == 422

    async def test_feature_offer(self, api_client, merchant_headers, admin_headers):
        offer = await create_offer(api_client, merchant_headers)
        response = await api_client.patch(
            f"/api/v1/admin/offers/{offer['id']}/featured",
            json={"is_featured": True},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["is_featured"] is True
        assert response.json()["state"] == "pending"


class TestAdminDiscountCodes:
    async def test_create_list_and_duplicate(self, api_client, admin_headers, merchant_id):
        body = {
            "merchant_id": str(merchant_id),
            "code": "ramadan25",
            "discount_type": "percentage",
            "discount_value": "25",
        }
        created = await api_client.post("/api/v1/admin/discount-codes", json=body, headers=admin_headers)
        assert created.status_code == 201
        assert created.json()["code"] == "RAMADAN25"
        assert created.json()["merchant_id"] == str(merchant_id)

        duplicate = await api_client.post(
            "/api/v1/admin/discount-codes", json={**body, "code": "RAMADAN25"}, headers=admin_headers
        )
        assert duplicate.status_code == 400

        listed = await api_client.get("/api/v1/admin/discount-codes", headers=admin_headers)
        assert [c["code"] for c in listed.json()] == ["RAMADAN25"]

    async def test_percentage_over_100_rejected(self, api_client, admin_headers, merchant_id):
        response = await api_client.post(
            "/api/v1/admin/discount-codes",
            json={
                "merchant_id": str(merchant_id),
                "code": "TOOMUCH",
                "discount_type": "percentage",
                "discount_value": "150",
            },
            headers=admin_headers,
        )
        assert response.status_code == 422

    async def test_update_and_delete_unused(self, api_client, admin_headers, merchant_id):
        created = await api_client.post(
            "/api/v1/admin/discount-codes",
            json={
                "merchant_id": str(merchant_id),
                "code": "FLAT5",
                "discount_type": "fixed",
                "discount_value": "5",
            },
            headers=admin_headers,
        )
        code_id = created.json()["id"]

        updated = await api_client.patch(
            f"/api/v1/admin/discount-codes/{code_id}",
            json={"is_active": False, "max_uses": 10},
            headers=admin_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["is_active"] is False
        assert updated.json()["max_uses"] == 10

        deleted = await api_client.delete(
            f"/api/v1/admin/discount-codes/{code_id}", headers=admin_headers
        )
        assert deleted.status_code == 204

    @pytest.mark.parametrize(
        "field", ["discount_type", "discount_value", "minimum_order_value", "is_active"]
    )
    async def test_null_for_required_field_is_422(
        self, api_client, admin_headers, merchant_id, field
    ):
        created = await api_client.post(
            "/api/v1/admin/discount-codes",
            json={
                "merchant_id": str(merchant_id),
                "code": "NULLCHECK",
                "discount_type": "percentage",
                "discount_value": "10",
            },
            headers=admin_headers,
        )
        code_id = created.json()["id"]

        response = await api_client.patch(
            f"/api/v1/admin/discount-codes/{code_id}", json={field: None}, headers=admin_headers
        )
        assert response.status_code == 422

        listed = await api_client.get("/api/v1/admin/discount-codes", headers=admin_headers)
        assert listed.json()[0][field] == created.json()[field]

    async def test_used_code_cannot_be_deleted(
        self, api_client, admin_headers, merchant_id, customer_headers
    ):
        created = await api_client.post(
            "/api/v1/admin/discount-codes",
            json={
                "merchant_id": str(merchant_id),
                "code": "STOREWIDE",
                "discount_type": "fixed",
                "discount_value": "5",
            },
            headers=admin_headers,
        )
        code_id = created.json()["id"]
        redeemed = await api_client.post(
            "/api/v1/discount-codes/redeem",
            json={"code": "storewide", "order_value": "20.00"},
            headers=customer_headers,
        )
        assert redeemed.status_code == 200, redeemed.text

        response = await api_client.delete(
            f"/api/v1/admin/discount-codes/{code_id}", headers=admin_headers
        )
        assert response.status_code == 409

        usages = await api_client.get(
            f"/api/v1/admin/discount-codes/{code_id}/usages", headers=admin_headers
        )
        assert len(usages.json()) == 1
        assert usages.json()[0]["discount_amount"] == "5.00"


class TestAdminPlans:
    async def test_seed_then_list(self, api_client, admin_headers):
        seeded = await api_client.post("/api/v1/admin/plans/seed", headers=admin_headers)
        assert [p["tier"] for p in seeded.json()] == ["starter", "professional", "enterprise"]

        again = await api_client.post("/api/v1/admin/plans/seed", headers=admin_headers)
        assert again.json() == []

    async def test_create_duplicate_tier(self, api_client, admin_headers, plans):
        response = await api_client.post(
            "/api/v1/admin/plans",
            json={"tier": "Starter", "name": "Starter again", "offer_limit": 8},
            headers=admin_headers,
        )
        assert response.status_code == 400

    async def test_edit_limit_applies_to_subscribers(
        self, api_client, admin_headers, merchant_headers, plans
    ):
        await api_client.post(
            "/api/v1/subscriptions", json={"tier": "starter"}, headers=merchant_headers
        )
        response = await api_client.patch(
            f"/api/v1/admin/plans/{plans['starter'].id}",
            json={"offer_limit": 8},
            headers=admin_headers,
        )
        assert response.status_code == 200

        quota = await api_client.get("/api/v1/offers/quota", headers=merchant_headers)
        assert quota.json()["limit"] == 8
