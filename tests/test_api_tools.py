"""Tests for the /tools endpoints."""
import pytest
import requests

from app.api.tools import TOOLS
from app.core.access_service import AccessControlService
from app.core.ttlock import SessionManager
from app.flask_app import create_app

EXPECTED_TOOLS = {
    "ping",
    "auth.login",
    "auth.refresh",
    "locks.list",
    "locks.detail",
    "locks.unlock",
    "locks.lock",
    "cards.list",
    "cards.add",
    "cards.bulkAdd",
    "cards.delete",
    "cards.bulkDelete",
    "cards.clear",
    "records.list",
}


@pytest.fixture()
def api(app_config, service):
    app = create_app(app_config, service)
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture()
def anonymous_api(app_config, client):
    service = AccessControlService(client, SessionManager(client), audit_enabled=False)
    app = create_app(app_config, service)
    with app.test_client() as test_client:
        yield test_client


def test_tool_listing(api):
    response = api.get("/tools")

    assert response.status_code == 200
    assert response.json["server"] == "ttlock-gateway"
    assert set(response.json["tools"]) == EXPECTED_TOOLS == set(TOOLS)


def test_ping(api):
    assert api.post("/tools/ping", json={"text": "hi"}).json == {"pong": True, "echo": "hi"}
    assert api.post("/tools/ping").json == {"pong": True, "echo": "pong"}


def test_unknown_tool(api):
    response = api.post("/tools/locks.explode", json={})

    assert response.status_code == 404
    assert response.json["error"] == "UnknownTool"


def test_invalid_json_body(api):
    response = api.post("/tools/ping", data="{not json", content_type="application/json")

    assert response.status_code == 400
    assert response.json["error"] == "InvalidArguments"


def test_non_object_body(api):
    response = api.post("/tools/ping", json=[1, 2])

    assert response.status_code == 400
    assert "JSON object" in response.json["message"]


# ─────────────────────────────────────────────────────────────────────────────
# Auth
# ─────────────────────────────────────────────────────────────────────────────
def test_login(ttlock, anonymous_api, token_response):
    ttlock.reply("/oauth2/token", token_response)

    response = anonymous_api.post("/tools/auth.login", json={
        "username": "owner@example.com",
        "passwordMd5": "5F4DCC3B5AA765D61D8327DEB882CF99",
    })

    assert response.status_code == 200
    assert response.json == {"ok": True}
    assert ttlock.forms("/oauth2/token")[0]["password"] == "5f4dcc3b5aa765d61d8327deb882cf99"


def test_login_rejects_plain_password(ttlock, anonymous_api):
    response = anonymous_api.post("/tools/auth.login", json={"username": "owner", "passwordMd5": "secret"})

    assert response.status_code == 400
    assert ttlock.calls == []


def test_login_failure(ttlock, anonymous_api):
    ttlock.reply("/oauth2/token", {"errcode": 10007, "errmsg": "invalid account or invalid password"})

    response = anonymous_api.post("/tools/auth.login", json={"username": "owner", "passwordMd5": "a" * 32})

    assert response.status_code == 401
    assert response.json["error"] == "AuthenticationFailed"


def test_refresh_without_session(ttlock, anonymous_api):
    response = anonymous_api.post("/tools/auth.refresh")

    assert response.status_code == 401
    assert response.json["error"] == "NotAuthenticated"
    assert ttlock.calls == []


def test_privileged_tool_without_session(ttlock, anonymous_api):
    response = anonymous_api.post("/tools/locks.list", json={})

    assert response.status_code == 401
    assert response.json["error"] == "NotAuthenticated"
    assert ttlock.calls == []


# ─────────────────────────────────────────────────────────────────────────────
# Locks / cards / records
# ─────────────────────────────────────────────────────────────────────────────
def test_locks_list_returns_payload(ttlock, api):
    body = {"list": [{"lockId": 1}, {"lockId": 2}, {"lockId": 3}], "pageNo": 1, "pageSize": 50, "pages": 1, "total": 3}
    ttlock.reply("/v3/lock/list", body)

    response = api.post("/tools/locks.list", json={})

    assert response.status_code == 200
    assert response.json == body


@pytest.mark.parametrize("args", [{"pageSize": 101}, {"pageSize": 0}, {"pageNo": 0}, {"pageNo": "1"}])
def test_locks_list_rejects_bad_paging(ttlock, api, args):
    assert api.post("/tools/locks.list", json=args).status_code == 400
    assert ttlock.calls == []


def test_unlock_remote_error(ttlock, api):
    ttlock.reply("/v3/lock/unlock", {"errcode": -2012, "errmsg": "The Lock is not connected to any Gateway."})

    response = api.post("/tools/locks.unlock", json={"lockId": 100})

    assert response.status_code == 502
    assert response.json == {
        "error": "RemoteServiceError",
        "code": -2012,
        "message": "The Lock is not connected to any Gateway.",
    }


def test_transport_error(ttlock, api):
    ttlock.fail("/v3/lock/detail", requests.ConnectionError("connection refused"))

    response = api.post("/tools/locks.detail", json={"lockId": 100})

    assert response.status_code == 502
    assert response.json["error"] == "TransportError"


def test_lock_requires_lock_id(ttlock, api):
    response = api.post("/tools/locks.lock", json={})

    assert response.status_code == 400
    assert response.json["message"] == "lockId is required"


def test_cards_add(ttlock, api):
    ttlock.reply("/v3/identityCard/add", {"cardId": 7})

    response = api.post("/tools/cards.add", json={"lockId": 100, "cardNumber": "123456"})

    assert response.json == {"cardId": 7}
    form = ttlock.forms("/v3/identityCard/add")[0]
    assert (form["startDate"], form["endDate"], form["addType"]) == (0, 0, 2)
    assert "cardName" not in form


def test_cards_bulk_add(ttlock, api):
    ttlock.handle(
        "/v3/identityCard/add",
        lambda form: {"errcode": -3, "errmsg": "Invalid Parameter"} if form["cardNumber"] == "B" else {"cardId": 1},
    )

    response = api.post("/tools/cards.bulkAdd", json={
        "lockId": 100,
        "cards": [{"cardNumber": "A"}, {"cardNumber": "B"}, {"cardNumber": "C"}],
        "continueOnError": False,
    })

    assert response.status_code == 200
    assert response.json == {
        "lockId": 100,
        "total": 3,
        "attempted": 2,
        "abortedOn": "B",
        "error": "[-3] Invalid Parameter",
        "results": [
            {"cardNumber": "A", "ok": True},
            {"cardNumber": "B", "ok": False, "error": "[-3] Invalid Parameter"},
        ],
    }


@pytest.mark.parametrize("delay", [-1, 5001])
def test_cards_bulk_add_rejects_delay_out_of_range(ttlock, api, delay):
    response = api.post("/tools/cards.bulkAdd", json={"lockId": 100, "cards": [{"cardNumber": "A"}], "delayMs": delay})

    assert response.status_code == 400
    assert ttlock.calls == []


def test_cards_bulk_add_rejects_bad_entry(ttlock, api):
    response = api.post("/tools/cards.bulkAdd", json={"lockId": 100, "cards": [{"cardNumber": "A"}, {}]})

    assert response.status_code == 400
    assert response.json["message"].startswith("cards[1].")
    assert ttlock.calls == []


def test_cards_delete_and_bulk_delete(ttlock, api):
    ttlock.reply("/v3/identityCard/delete", {"errcode": 0})

    api.post("/tools/cards.delete", json={"lockId": 100, "cardId": 7, "deleteType": 1})
    response = api.post("/tools/cards.bulkDelete", json={"lockId": 100, "cardIds": [8, 9]})

    assert response.json["success"] == 2
    assert [form["deleteType"] for form in ttlock.forms("/v3/identityCard/delete")] == [1, 2, 2]


def test_cards_delete_rejects_bad_type(ttlock, api):
    response = api.post("/tools/cards.delete", json={"lockId": 100, "cardId": 7, "deleteType": 4})

    assert response.status_code == 400
    assert ttlock.calls == []


def test_cards_clear_requires_confirm(ttlock, api):
    response = api.post("/tools/cards.clear", json={"lockId": 100})

    assert response.status_code == 200
    assert response.json["ok"] is False
    assert ttlock.calls == []


def test_cards_clear_confirmed(ttlock, api):
    ttlock.reply("/v3/identityCard/clear", {"errcode": 0})

    response = api.post("/tools/cards.clear", json={"lockId": 100, "confirm": True})

    assert response.status_code == 200
    assert ttlock.paths == ["/v3/identityCard/clear"]


def test_records_list(ttlock, api):
    ttlock.reply("/v3/lockRecord/list", {"list": [{"recordId": 1}]})

    response = api.post("/tools/records.list", json={"lockId": 100, "startDate": 1700000000000})

    assert response.json == {"list": [{"recordId": 1}]}
    form = ttlock.forms("/v3/lockRecord/list")[0]
    assert form["startDate"] == 1700000000000
    assert "endDate" not in form


def test_cards_bulk_add_honours_delay(ttlock, api, throttle):
    ttlock.reply("/v3/identityCard/add", {"cardId": 1})

    response = api.post("/tools/cards.bulkAdd", json={
        "lockId": 100,
        "cards": [{"cardNumber": "A"}, {"cardNumber": "B"}, {"cardNumber": "C"}],
        "delayMs": 50,
    })

    assert response.json["success"] == 3
    assert throttle == [(0.05, 1), (0.05, 2)]


def test_cards_bulk_delete_honours_delay(ttlock, api, throttle):
    ttlock.handle(
        "/v3/identityCard/delete",
        lambda form: {"errcode": 1, "errmsg": "failed"} if form["cardId"] == 8 else {"errcode": 0},
    )

    response = api.post("/tools/cards.bulkDelete", json={
        "lockId": 100,
        "cardIds": [7, 8, 9],
        "delayMs": 50,
        "continueOnError": False,
    })

    assert response.json["abortedOn"] == 8
    assert throttle == [(0.05, 1)]


def test_cards_add_keeps_card_number_verbatim(ttlock, api):
    ttlock.reply("/v3/identityCard/add", {"cardId": 7})

    api.post("/tools/cards.add", json={"lockId": 100, "cardNumber": " 0012 "})

    assert ttlock.forms("/v3/identityCard/add")[0]["cardNumber"] == " 0012 "


def test_cards_add_rejects_blank_card_number(ttlock, api):
    response = api.post("/tools/cards.add", json={"lockId": 100, "cardNumber": "   "})

    assert response.status_code == 400
    assert ttlock.calls == []
