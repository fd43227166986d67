"""
HTTP surface tests: cookie-carried sessions, role checks and the JSON
contract of the /api/v1 blueprints.
"""

import pytest

from conftest import PASSWORD

WAREHOUSE = {
    "name": "Central Distribution",
    "code": "CDC-001",
    "addressLine": "1 Dock Road",
    "city": "Gdansk",
    "countryCode": "pl",
    "capacity": 50000,
}


def _create_warehouse(client, **overrides):
    return client.post("/api/v1/warehouses", json={**WAREHOUSE, **overrides})


def _create_commodity(client, sku="WIDGET-1"):
    return client.post(
        "/api/v1/commodities", json={"sku": sku, "name": "Widget", "unitOfMeasure": "pcs"}
    )


class TestAuthRoutes:
    def test_health_needs_no_session(self, client, db_session):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ok"

    def test_login_sets_http_only_cookie(self, client, login, make_operator):
        make_operator("jdoe")
        resp = login(client, "JDOE")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["username"] == "jdoe"
        assert body["expiresAt"].endswith("Z")
        assert "token" not in body

        cookie = next(h for h in resp.headers.getlist("Set-Cookie") if h.startswith("als_auth="))
        assert "HttpOnly" in cookie
        assert "SameSite=Lax" in cookie
        assert "Path=/" in cookie
        assert "Secure" not in cookie

    def test_failed_login_is_generic(self, client, login, make_operator):
        make_operator("jdoe")
        wrong = login(client, "jdoe", "bad-password")
        unknown = login(client, "ghost", PASSWORD)

        assert wrong.status_code == unknown.status_code == 200
        assert wrong.get_json() == unknown.get_json()
        assert wrong.get_json() == {"success": False, "username": None, "expiresAt": None}
        assert not any(h.startswith("als_auth=") for h in wrong.headers.getlist("Set-Cookie"))

    def test_over_long_password_login_is_refused_not_500(self, client, login, make_operator):
        make_operator("jdoe")
        resp = login(client, "jdoe", "x" * 200)
        assert resp.status_code == 200
        assert resp.get_json()["success"] is False

    def test_login_requires_both_fields(self, client, db_session):
        assert client.post("/api/v1/auth/login", json={"username": "x"}).status_code == 400

    def test_me_and_logout(self, client, login, make_operator):
        assert client.get("/api/v1/auth/me").status_code == 401

        make_operator("jdoe")
        login(client, "jdoe")
        me = client.get("/api/v1/auth/me")
        assert me.status_code == 200
        assert me.get_json()["username"] == "jdoe"

        out = client.post("/api/v1/auth/logout")
        assert out.status_code == 200
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_logout_revokes_the_artifact_not_just_the_cookie(self, client, login, make_operator):
        make_operator("jdoe")
        resp = login(client, "jdoe")
        cookie = next(h for h in resp.headers.getlist("Set-Cookie") if h.startswith("als_auth="))
        artifact = cookie.split(";", 1)[0].split("=", 1)[1]

        client.post("/api/v1/auth/logout")

        replay = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {artifact}"})
        assert replay.status_code == 401

    def test_logout_without_session_is_ok(self, client, db_session):
        assert client.post("/api/v1/auth/logout").status_code == 200


class TestWarehouseRoutes:
    def test_requires_session(self, client, db_session):
        assert client.get("/api/v1/warehouses").status_code == 401
        assert _create_warehouse(client).status_code == 401

    def test_create_and_lookup_any_casing(self, operator_client):
        resp = _create_warehouse(operator_client)
        assert resp.status_code == 201
        created = resp.get_json()
        assert created["code"] == "cdc-001"
        assert created["countryCode"] == "PL"
        assert created["defaultZone"] == "DEFAULT"
        assert created["createdAt"] == created["updatedAt"]

        by_code = operator_client.get("/api/v1/warehouses/by-code/CdC-001")
        assert by_code.status_code == 200
        assert by_code.get_json()["id"] == created["id"]

        assert operator_client.get(f"/api/v1/warehouses/{created['id']}").status_code == 200
        assert operator_client.get("/api/v1/warehouses/missing").status_code == 404

    def test_duplicate_code_is_409(self, operator_client):
        _create_warehouse(operator_client, code="WH-1")
        resp = _create_warehouse(operator_client, code="wh-1")
        assert resp.status_code == 409
        assert resp.get_json() == {"error": "warehouse code exists"}

    @pytest.mark.parametrize(
        "overrides",
        [
            {"countryCode": "POL"},
            {"countryCode": "1A"},
            {"capacity": 0},
            {"capacity": "lots"},
            {"capacity": "0.001"},
            {"capacity": "12345678901234567"},
            {"defaultZone": "Z" * 51},
            {"name": "  "},
            {"unknownField": 1},
        ],
    )
    def test_invalid_payloads_are_400(self, operator_client, overrides):
        assert _create_warehouse(operator_client, **overrides).status_code == 400

    def test_missing_fields_are_400(self, operator_client):
        resp = operator_client.post("/api/v1/warehouses", json={"code": "x"})
        assert resp.status_code == 400
        assert "Missing required fields" in resp.get_json()["error"]

    def test_deactivate_is_admin_only(self, app, operator_client, make_operator, login):
        wh_id = _create_warehouse(operator_client).get_json()["id"]
        assert operator_client.post(f"/api/v1/warehouses/{wh_id}/deactivate").status_code == 403

        make_operator("boss", role="admin")
        admin = app.test_client()
        login(admin, "boss")
        resp = admin.post(f"/api/v1/warehouses/{wh_id}/deactivate")
        assert resp.status_code == 200
        assert resp.get_json()["isActive"] is False

        listed = operator_client.get("/api/v1/warehouses").get_json()
        assert listed == []
        listed = operator_client.get("/api/v1/warehouses?includeInactive=true").get_json()
        assert [w["id"] for w in listed] == [wh_id]


class TestStockRoutes:
    def test_receiving_scenario(self, operator_client):
        wh = _create_warehouse(operator_client).get_json()
        commodity = _create_commodity(operator_client).get_json()

        resp = operator_client.post(
            "/api/v1/stocks",
            json={"warehouseId": wh["id"], "commodityId": commodity["id"], "quantity": 120},
        )
        assert resp.status_code == 201
        record = resp.get_json()
        assert record["sku"] == "widget-1"
        assert record["unitOfMeasure"] == "pcs"
        assert record["warehouseZone"] == "DEFAULT"
        assert record["source"] == "manual"
        assert record["createdBy"] == "system"
        assert record["operatorId"] is None
        assert record["occurredAt"] == record["createdAt"]

        fetched = operator_client.get(f"/api/v1/stocks/{record['id']}")
        assert fetched.get_json()["id"] == record["id"]

    def test_bad_quantity_and_missing_refs(self, operator_client):
        wh = _create_warehouse(operator_client).get_json()
        commodity = _create_commodity(operator_client).get_json()

        zero = operator_client.post(
            "/api/v1/stocks",
            json={"warehouseId": wh["id"], "commodityId": commodity["id"], "quantity": 0},
        )
        assert zero.status_code == 400

        ghost = operator_client.post(
            "/api/v1/stocks",
            json={"warehouseId": "ghost", "commodityId": commodity["id"], "quantity": 1},
        )
        assert ghost.status_code == 404

    def test_query_window_and_limit(self, operator_client):
        wh = _create_warehouse(operator_client).get_json()
        commodity = _create_commodity(operator_client).get_json()
        for day in range(1, 6):
            operator_client.post(
                "/api/v1/stocks",
                json={
                    "warehouseId": wh["id"],
                    "commodityId": commodity["id"],
                    "quantity": "1.5",
                    "occurredAt": f"2024-01-0{day}T00:00:00Z",
                },
            )

        everything = operator_client.get(f"/api/v1/stocks?warehouseId={wh['id']}").get_json()
        assert len(everything) == 5
        assert everything[0]["occurredAt"] == "2024-01-05T00:00:00Z"

        limited = operator_client.get("/api/v1/stocks?limit=2").get_json()
        assert len(limited) == 2

        window = operator_client.get(
            "/api/v1/stocks?from=2024-01-02T00:00:00Z&to=2024-01-03T00:00:00Z"
        ).get_json()
        assert [r["occurredAt"][:10] for r in window] == ["2024-01-03", "2024-01-02"]

        per_wh = operator_client.get(f"/api/v1/warehouses/{wh['id']}/stocks?limit=1").get_json()
        assert len(per_wh) == 1
        per_c = operator_client.get(f"/api/v1/commodities/{commodity['id']}/stocks").get_json()
        assert len(per_c) == 5

    def test_attribution_is_taken_from_payload(self, operator_client):
        wh = _create_warehouse(operator_client).get_json()
        commodity = _create_commodity(operator_client).get_json()
        me = operator_client.get("/api/v1/auth/me").get_json()["operator"]

        record = operator_client.post(
            "/api/v1/stocks",
            json={
                "warehouseId": wh["id"],
                "commodityId": commodity["id"],
                "quantity": 2,
                "operatorId": me["id"],
                "createdBy": "scanner-7",
                "source": "import",
            },
        ).get_json()
        assert record["operatorId"] == me["id"]
        assert record["createdBy"] == "scanner-7"
        assert record["source"] == "import"

    @pytest.mark.parametrize("quantity", ["0.0001", 0.0004, "1.2345"])
    def test_quantity_finer_than_column_scale_is_400(self, operator_client, quantity):
        wh = _create_warehouse(operator_client).get_json()
        commodity = _create_commodity(operator_client).get_json()
        resp = operator_client.post(
            "/api/v1/stocks",
            json={"warehouseId": wh["id"], "commodityId": commodity["id"], "quantity": quantity},
        )
        assert resp.status_code == 400
        assert "decimal places" in resp.get_json()["error"]
        assert operator_client.get("/api/v1/stocks").get_json() == []

    def test_bad_query_params_are_400(self, operator_client):
        assert operator_client.get("/api/v1/stocks?from=yesterday").status_code == 400
        assert operator_client.get("/api/v1/stocks?limit=ten").status_code == 400

    def test_unknown_warehouse_stock_list_is_404(self, operator_client):
        assert operator_client.get("/api/v1/warehouses/nope/stocks").status_code == 404


class TestCommodityRoutes:
    def test_create_lookup_and_conflict(self, operator_client):
        created = _create_commodity(operator_client)
        assert created.status_code == 201
        assert created.get_json()["controlParameters"] == "{}"

        assert operator_client.get("/api/v1/commodities/by-sku/WIDGET-1").status_code == 200
        assert _create_commodity(operator_client, sku="widget-1").status_code == 409
        assert len(operator_client.get("/api/v1/commodities").get_json()) == 1


class TestOperatorRoutes:
    def test_admin_manages_operators(self, admin_client, login, app):
        resp = admin_client.post(
            "/api/v1/operators",
            json={"username": "NewGuy", "password": PASSWORD, "fullName": "New Guy", "role": "operator"},
        )
        assert resp.status_code == 201
        created = resp.get_json()
        assert created["username"] == "newguy"
        assert "passwordHash" not in created

        usernames = [o["username"] for o in admin_client.get("/api/v1/operators").get_json()]
        assert usernames == ["admin", "newguy"]

        other = app.test_client()
        assert login(other, "newguy").status_code == 200
        assert other.get("/api/v1/operators").status_code == 403

        deactivated = admin_client.post(f"/api/v1/operators/{created['id']}/deactivate")
        assert deactivated.get_json()["isActive"] is False
        assert other.get("/api/v1/auth/me").status_code == 401

    def test_operator_validation_errors(self, admin_client):
        bad_timeout = admin_client.post(
            "/api/v1/operators",
            json={"username": "x", "password": PASSWORD, "fullName": "X", "idleTimeoutMinutes": 500},
        )
        assert bad_timeout.status_code == 400

        too_long = admin_client.post(
            "/api/v1/operators",
            json={"username": "longpw", "password": "x" * 100, "fullName": "Long Password"},
        )
        assert too_long.status_code == 400
        assert "72 bytes" in too_long.get_json()["error"]

        dup = admin_client.post(
            "/api/v1/operators",
            json={"username": "ADMIN", "password": PASSWORD, "fullName": "Again"},
        )
        assert dup.status_code == 409
