"""
Integration tests for the HTTP API.

Tests cover:
- Response envelope and error codes
- Authentication and role checks
- Business rules administration
- Checkout, payment and reward claim over HTTP
"""

import pytest

from ecommerce_api.models import UserRole

pytestmark = pytest.mark.integration


class TestPublicEndpoints:
    """Test endpoints that need no token."""

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_payment_methods(self, client):
        response = await client.get("/api/v1/payments/methods")

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert [m["id"] for m in body["data"]["methods"]] == ["BCP_code", "bank_transfer"]

    async def test_business_rules_defaults(self, client):
        response = await client.get("/api/v1/config/business-rules")

        rules = response.json()["data"]
        assert rules["minMonthlyBuy"] == 1
        assert rules["shippingCost"] == 15.0


class TestAuthentication:
    """Test login and token checks."""

    async def test_login(self, client, factory):
        user = await factory.affiliate()

        response = await client.post(
            "/api/v1/auth/login", json={"dni": user.dni, "password": factory.password}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["data"]["user"]["id"] == user.id
        assert body["data"]["token"]
        assert "password_hash" not in body["data"]["user"]

    async def test_wrong_password(self, client, factory):
        user = await factory.user()

        response = await client.post(
            "/api/v1/auth/login", json={"dni": user.dni, "password": "incorrecta"}
        )

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": "DNI o contraseña incorrectos",
            "error_code": "INVALID_CREDENTIALS",
        }

    async def test_inactive_account_cannot_login(self, client, factory):
        user = await factory.user(is_active=False)

        response = await client.post(
            "/api/v1/auth/login", json={"dni": user.dni, "password": factory.password}
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "ACCOUNT_INACTIVE"

    async def test_invalid_body_is_a_validation_error(self, client):
        response = await client.post("/api/v1/auth/login", json={"dni": "abc"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_missing_token(self, client):
        response = await client.get("/api/v1/commissions/my-commissions")

        assert response.status_code == 401
        assert response.json()["error_code"] == "MISSING_TOKEN"

    async def test_invalid_token(self, client):
        response = await client.get(
            "/api/v1/auth/profile", headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_TOKEN"

    async def test_wrong_role(self, client, factory, auth):
        visitor = await factory.user(UserRole.VISITOR)

        response = await client.get("/api/v1/commissions/my-commissions", headers=auth(visitor))

        assert response.status_code == 403
        assert response.json()["message"] == "Permisos insuficientes"

    async def test_deactivated_user_token_is_rejected(self, client, factory, auth):
        user = await factory.affiliate(is_active=False)

        response = await client.get("/api/v1/auth/profile", headers=auth(user))

        assert response.status_code == 401
        assert response.json()["error_code"] == "ACCOUNT_INACTIVE"


class TestBusinessRules:
    """Test rule updates over HTTP."""

    async def test_general_admin_updates_rules(self, client, factory, auth):
        admin = await factory.admin(general=True)

        response = await client.put(
            "/api/v1/config/business-rules",
            json={"shippingCost": 12, "minMonthlyBuy": 3},
            headers=auth(admin),
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert sorted(data["updated"]) == ["minMonthlyBuy", "shippingCost"]
        assert data["rules"]["shippingCost"] == 12.0

        rules = (await client.get("/api/v1/config/business-rules")).json()["data"]
        assert rules["minMonthlyBuy"] == 3.0

    async def test_regional_admin_cannot_update_rules(self, client, factory, auth):
        admin = await factory.admin(regions=["Lima"])

        response = await client.put(
            "/api/v1/config/business-rules", json={"shippingCost": 0}, headers=auth(admin)
        )

        assert response.status_code == 403

    async def test_empty_update_is_rejected(self, client, factory, auth):
        admin = await factory.admin(general=True)

        response = await client.put("/api/v1/config/business-rules", json={}, headers=auth(admin))

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestPurchaseFlow:
    """Test cart, checkout, payment and points over HTTP."""

    async def test_checkout_pay_and_claim(self, client, factory, auth):
        sponsor = await factory.affiliate()
        buyer = await factory.affiliate(sponsor=sponsor)
        product = await factory.product(affiliate_price="500.00", stock=5)
        reward = await factory.reward(points_required=100, stock=2)
        headers = auth(buyer)

        response = await client.post(
            "/api/v1/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers
        )
        assert response.status_code == 201

        response = await client.post(
            "/api/v1/orders",
            json={"shipping_address": {
                "name": "Ana Torres",
                "phone": "999888777",
                "region": "Lima",
                "city": "Miraflores",
                "address": "Av. Larco 1020",
            }},
            headers=headers,
        )
        assert response.status_code == 201
        order = response.json()["data"]
        assert order["total_amount"] == 1015.0

        response = await client.post(
            "/api/v1/payments/confirm",
            json={"order_id": order["id"], "method": "BCP_code", "bcp_code": "55501234"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["order"]["status"] == "paid"

        response = await client.post(
            "/api/v1/payments/confirm",
            json={"order_id": order["id"], "method": "BCP_code", "bcp_code": "55501234"},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "ORDER_ALREADY_PROCESSED"

        points = (await client.get("/api/v1/rewards/my-points", headers=headers)).json()["data"]
        assert points["current_points"] == 101

        response = await client.post(
            "/api/v1/rewards/claim", json={"reward_id": reward.id}, headers=headers
        )
        assert response.status_code == 201
        assert response.json()["data"]["points_used"] == 100

        commissions = (await client.get(
            "/api/v1/commissions/my-commissions", headers=auth(sponsor)
        )).json()["data"]
        assert commissions["pagination"]["totalItems"] == 1
        assert commissions["commissions"][0]["type"] == "referral"
        assert commissions["commissions"][0]["amount"] == 100.0

    async def test_bcp_code_required_for_bcp_payments(self, client, factory, auth):
        buyer = await factory.affiliate()

        response = await client.post(
            "/api/v1/payments/confirm",
            json={"order_id": 1, "method": "BCP_code"},
            headers=auth(buyer),
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestAccountAndCatalogEndpoints:
    """Test profile, referral limit, stats and catalog maintenance routes."""

    async def test_update_profile(self, client, factory, auth):
        affiliate = await factory.affiliate()

        response = await client.patch(
            "/api/v1/auth/profile", json={"full_name": "Rosa Quispe", "city": "Trujillo"}, headers=auth(affiliate)
        )

        body = response.json()
        assert response.status_code == 200
        assert body["data"]["full_name"] == "Rosa Quispe"
        assert body["data"]["affiliate"]["city"] == "Trujillo"

    async def test_update_max_referrals(self, client, factory, auth):
        admin = await factory.admin(general=True)
        affiliate = await factory.affiliate()

        response = await client.put(
            f"/api/v1/auth/affiliates/{affiliate.id}/max-referrals",
            json={"maxReferrals": 4},
            headers=auth(admin),
        )

        assert response.status_code == 200
        assert response.json()["data"]["max_referrals"] == 4

    async def test_affiliate_cannot_change_referral_limit(self, client, factory, auth):
        affiliate = await factory.affiliate()

        response = await client.put(
            f"/api/v1/auth/affiliates/{affiliate.id}/max-referrals",
            json={"max_referrals": 50},
            headers=auth(affiliate),
        )

        assert response.status_code == 403

    async def test_stats_routes(self, client, factory, auth):
        affiliate = await factory.affiliate()
        visitor = await factory.user()

        top = await client.get("/api/v1/stats/top-products")
        performance = await client.get("/api/v1/stats/affiliate-performance", headers=auth(affiliate))
        forbidden = await client.get("/api/v1/stats/affiliate-performance", headers=auth(visitor))

        assert top.status_code == 200
        assert top.json()["data"] == []
        assert performance.status_code == 200
        assert performance.json()["data"]["network_metrics"]["total_referrals"] == 0
        assert forbidden.status_code == 403

    async def test_manual_deactivation_needs_closed_month(self, client, factory, auth):
        admin = await factory.admin(general=True)

        missing = await client.post("/api/v1/monthly-tracking/run-deactivation", headers=auth(admin))
        future = await client.post(
            "/api/v1/monthly-tracking/run-deactivation", params={"month": "2999-01"}, headers=auth(admin)
        )

        assert missing.status_code == 400
        assert missing.json()["error_code"] == "VALIDATION_ERROR"
        assert future.status_code == 400
        assert future.json()["error_code"] == "MONTH_NOT_CLOSED"

    async def test_category_with_products_cannot_be_deleted(self, client, factory, auth):
        admin = await factory.admin(general=True)
        category = await factory.category()
        await factory.product(category=category)

        response = await client.delete(f"/api/v1/categories/{category.id}", headers=auth(admin))

        assert response.status_code == 409
        assert response.json()["error_code"] == "CATEGORY_HAS_PRODUCTS"

    async def test_check_availability(self, client, factory):
        product = await factory.product(stock=2)

        response = await client.post("/api/v1/products/check-availability", json={"ids": [product.id, 9999]})

        assert response.status_code == 200
        assert [r["available"] for r in response.json()["data"]] == [True, False]
