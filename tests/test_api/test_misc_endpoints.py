"""Tests for auth, realtor, stats, routing and reference endpoints."""

import pytest
from freezegun import freeze_time
from api.auth.login import handler as login_handler
from api.auth.logout import handler as logout_handler
from api.automation import handler as automation_handler
from api.config.maps_key import handler as maps_key_handler
from api.realtors.index import handler as realtors_handler
from api.realtors.item import handler as realtor_item_handler
from api.routes.optimize import handler as optimize_handler
from api.stats import handler as stats_handler
from api.supplies import handler as supplies_handler
from api.templates import handler as templates_handler
from src.config import SESSION_COOKIE_NAME
from src.services.auth import verify_session_token
from tests.utils.factories import create_automation_event, create_drop_row
from tests.utils.helpers import call_handler


@pytest.mark.unit
def test_login_sets_signed_cookie():
    response = call_handler(login_handler, "POST", "/api/auth/login",
                            body={"password": "test-password"}, authenticated=False)

    assert response.status == 200
    assert response.json() == {"success": True}
    cookie = response.headers["Set-Cookie"]
    assert "HttpOnly" in cookie
    token = cookie.split(";")[0].split("=", 1)[1]
    assert verify_session_token(token)


@pytest.mark.unit
def test_login_wrong_password():
    response = call_handler(login_handler, "POST", "/api/auth/login",
                            body={"password": "guess"}, authenticated=False)

    assert response.status == 401
    assert "Set-Cookie" not in response.headers


@pytest.mark.unit
def test_login_without_configured_password(monkeypatch):
    monkeypatch.delenv("APP_PASSWORD")

    response = call_handler(login_handler, "POST", "/api/auth/login",
                            body={"password": "anything"}, authenticated=False)

    assert response.status == 500
    assert response.json() == {"error": "server not configured"}


@pytest.mark.unit
def test_logout_clears_cookie():
    response = call_handler(logout_handler, "POST", "/api/auth/logout", authenticated=False)

    assert response.status == 200
    assert response.headers["Set-Cookie"].startswith(f"{SESSION_COOKIE_NAME}=")
    assert "Max-Age=0" in response.headers["Set-Cookie"]


@pytest.mark.unit
def test_realtor_create_get_patch(fake_db):
    created = call_handler(realtors_handler, "POST", "/api/realtors",
                           body={"first_name": "Avery", "email": "avery@example.com"})
    assert created.json() == {"id": 1, "success": True}

    listed = call_handler(realtors_handler, "GET", "/api/realtors").json()
    assert [r["first_name"] for r in listed] == ["Avery"]

    patched = call_handler(realtor_item_handler, "PATCH", "/api/realtors/1",
                           body={"company": "Summit Homes", "total_drops": 50})
    assert patched.json()["realtor"]["company"] == "Summit Homes"
    assert fake_db.row("realtors", 1)["total_drops"] == 0

    detail = call_handler(realtor_item_handler, "GET", "/api/realtors/1").json()
    assert detail["drops"] == []

    assert call_handler(realtor_item_handler, "GET", "/api/realtors/77").status == 404
    assert call_handler(realtor_item_handler, "DELETE", "/api/realtors/1").status == 405


@pytest.mark.unit
def test_realtor_requires_first_name(fake_db):
    response = call_handler(realtors_handler, "POST", "/api/realtors", body={"email": "x@example.com"})

    assert response.status == 400


@pytest.mark.unit
def test_stats(fake_db, realtor):
    fake_db.seed(
        "box_drops",
        create_drop_row(realtor_id=realtor["id"], status="delivered", scheduled_date="2024-03-05"),
        create_drop_row(status="cancelled", scheduled_date="2024-03-05"),
    )

    with freeze_time("2024-03-06 12:00:00"):
        response = call_handler(stats_handler, "GET", "/api/stats")

    stats = response.json()
    assert stats["totalDrops"] == 1
    assert stats["thisWeek"] == 1
    assert stats["conversionRate"] == 0
    assert stats["weekStart"] == "2024-03-04"
    assert stats["realtorCount"] == 1


@pytest.mark.unit
def test_route_without_key(no_maps_key):
    response = call_handler(optimize_handler, "POST", "/api/routes/optimize",
                            body={"addresses": ["A", "B"], "startAddress": "Depot"})

    assert response.status == 200
    data = response.json()
    assert data["optimized"] is False
    assert data["orderedAddresses"] == ["A", "B"]
    assert data["stops"] == ["Depot", "A", "B", "Depot"]
    assert data["mapsUrl"] == "https://www.google.com/maps/dir/Depot/A/B/Depot/"
    assert "totalMinutes" not in data


@pytest.mark.unit
@pytest.mark.parametrize("body", [{}, {"addresses": []}, {"addresses": "A"}])
def test_route_requires_addresses(no_maps_key, body):
    response = call_handler(optimize_handler, "POST", "/api/routes/optimize", body=body)

    assert response.status == 400
    assert response.json() == {"error": "addresses array is required"}


@pytest.mark.unit
def test_maps_key_is_never_returned(maps_key):
    response = call_handler(maps_key_handler, "GET", "/api/config/maps-key")

    assert response.json() == {"configured": True}
    assert maps_key not in response.raw_body.decode("utf-8")


@pytest.mark.unit
def test_maps_key_requires_session(maps_key):
    assert call_handler(maps_key_handler, "GET", "/api/config/maps-key", authenticated=False).status == 401


@pytest.mark.unit
def test_maps_key_not_configured(no_maps_key):
    assert call_handler(maps_key_handler, "GET", "/api/config/maps-key").json() == {"configured": False}


@pytest.mark.unit
def test_supplies_list_and_plan(fake_db):
    fake_db.seed("supply_items", {"name": "Moving box", "qty_per_kit": 10, "unit_cost": 1.5})
    fake_db.seed("box_drops", create_drop_row(scheduled_date="2024-03-05"))

    items = call_handler(supplies_handler, "GET", "/api/supplies").json()
    assert items[0]["name"] == "Moving box"

    plan = call_handler(supplies_handler, "GET", "/api/supplies?week=2024-03-06").json()
    assert plan["kits"] == 1
    assert plan["items"][0]["needed"] == 10
    assert plan["totalCost"] == 15.0


@pytest.mark.unit
def test_templates(fake_db):
    fake_db.seed("follow_up_templates", {"name": "Thanks", "type": "text_homeowner", "body": "Thanks!"})

    templates = call_handler(templates_handler, "GET", "/api/templates").json()

    assert templates[0]["type"] == "text_homeowner"


@pytest.mark.unit
def test_automation_log(fake_db):
    fake_db.seed("automation_log", create_automation_event(), create_automation_event("not_interested"))

    data = call_handler(automation_handler, "GET", "/api/automation?limit=1").json()

    assert data["total"] == 2
    assert len(data["events"]) == 1
    assert data["limit"] == 1

    assert call_handler(automation_handler, "GET", "/api/automation?offset=x").status == 400


@pytest.mark.unit
def test_store_outage_is_500(fake_db):
    fake_db.fail_tables.add("realtors")

    response = call_handler(realtors_handler, "GET", "/api/realtors")

    assert response.status == 500
    assert response.json() == {"error": "internal server error"}
