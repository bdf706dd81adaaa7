from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
import requests

from reasonable_excuse import USER_AGENT
from reasonable_excuse.models.settings import Shortcut
from reasonable_excuse.services.config_loader import ConfigError
from reasonable_excuse.services.firefly_client import FireflyClient, FireflyError, read_pat
from reasonable_excuse.services.shortcut_service import (
    ShortcutError,
    build_store_transaction_request,
    format_amount,
    format_date,
)

BUDGETS = {
    "data": [
        {"id": "7", "attributes": {"name": "Travel"}},
        {"id": "12", "attributes": {"name": "Food"}},
    ]
}

COFFEE = Shortcut(
    shortcut_id=0,
    shortcut_name="Coffee",
    shortcut_icon="cup",
    name="Coffee",
    source="Checking",
    destination="Corner Cafe",
    amount=3.5,
    budget="Food",
    category="Coffee",
)


class _FakeFirefly:
    """Stands in for ``requests.request`` and records every call."""

    def __init__(self, make_response, budgets=BUDGETS, store_status=200):
        self._make_response = make_response
        self._budgets = budgets
        self._store_status = store_status
        self.calls = []

    def __call__(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append(SimpleNamespace(method=method, url=url, headers=headers, json=json))
        if method == "GET" and url.endswith("/api/v1/budgets"):
            return self._make_response(200, self._budgets, "application/vnd.api+json")
        if method == "POST" and url.endswith("/api/v1/transactions"):
            if self._store_status >= 400:
                return self._make_response(self._store_status, {"message": "rejected"})
            return self._make_response(200, {"data": {"id": "99"}}, "application/vnd.api+json")
        raise AssertionError(f"unexpected request {method} {url}")


# ===== Formatting =====


@pytest.mark.parametrize(
    "amount, expected",
    [(3.5, "3.5"), (5.0, "5"), (5, "5"), (12.25, "12.25"), (0.1, "0.1")],
)
def test_format_amount(amount, expected) -> None:
    assert format_amount(amount) == expected


def test_format_date_keeps_offset() -> None:
    now = datetime(2018, 9, 17, 12, 46, 47, 123456, tzinfo=timezone(timedelta(hours=1)))
    assert format_date(now) == "2018-09-17T12:46:47+01:00"


def test_format_date_defaults_to_local_time() -> None:
    value = format_date()
    assert value[10] == "T"
    assert value[-6] in "+-" and value[-3] == ":"


def test_build_request_uses_shortcut_fields() -> None:
    now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    request = build_store_transaction_request(COFFEE, budget_id="12", now=now)

    payload = request.model_dump(by_alias=True)
    assert payload["error_if_duplicate_hash"] is True
    assert payload["apply_rules"] is True
    assert payload["fire_webhooks"] is True
    assert payload["transactions"] == [
        {
            "type": "withdrawal",
            "date": "2024-01-02T03:04:05+00:00",
            "amount": "3.5",
            "description": "Coffee",
            "budget_id": "12",
            "category_name": "Coffee",
            "source_name": "Checking",
            "destination_name": "Corner Cafe",
        }
    ]


def test_build_request_prefers_amount_override() -> None:
    request = build_store_transaction_request(COFFEE, amount_override=4.0)
    assert request.transactions[0].amount == "4"


def test_build_request_needs_an_amount() -> None:
    no_amount = COFFEE.model_copy(update={"amount": None})
    with pytest.raises(ShortcutError, match="amount_override"):
        build_store_transaction_request(no_amount)


# ===== Client =====


def test_read_pat_strips_trailing_whitespace(pat_file) -> None:
    assert read_pat(pat_file) == "secret-token"


def test_read_pat_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigError, match="read firefly PAT from file"):
        read_pat(tmp_path / "nope")


def test_resolve_budget_sends_auth_headers(monkeypatch, make_response) -> None:
    fake = _FakeFirefly(make_response)
    monkeypatch.setattr("requests.request", fake)
    client = FireflyClient("https://ff.example.com/", "tok")

    assert client.resolve_budget("Food") == "12"

    call = fake.calls[0]
    assert call.url == "https://ff.example.com/api/v1/budgets"
    assert call.headers["Authorization"] == "Bearer tok"
    assert call.headers["Accept"] == "application/vnd.api+json"
    assert call.headers["User-Agent"] == USER_AGENT


def test_resolve_budget_none_skips_request(monkeypatch, make_response) -> None:
    fake = _FakeFirefly(make_response)
    monkeypatch.setattr("requests.request", fake)

    assert FireflyClient("https://ff.example.com/", "tok").resolve_budget(None) is None
    assert fake.calls == []


def test_resolve_budget_unknown_name(monkeypatch, make_response) -> None:
    monkeypatch.setattr("requests.request", _FakeFirefly(make_response))
    with pytest.raises(FireflyError, match="Could not find budget with name Rent"):
        FireflyClient("https://ff.example.com/", "tok").resolve_budget("Rent")


def test_list_budgets_error_status(monkeypatch, make_response) -> None:
    monkeypatch.setattr(
        "requests.request",
        lambda method, url, **kwargs: make_response(401, {"message": "Unauthenticated."}),
    )
    with pytest.raises(FireflyError, match="HTTP 401"):
        FireflyClient("https://ff.example.com/", "tok").list_budgets()


def test_transport_errors_become_firefly_errors(monkeypatch) -> None:
    def boom(method, url, **kwargs):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr("requests.request", boom)
    with pytest.raises(FireflyError, match="Failed to send GET /v1/budgets"):
        FireflyClient("https://ff.example.com/", "tok").list_budgets()


def test_base_url_without_trailing_slash() -> None:
    client = FireflyClient("https://ff.example.com/firefly", "tok")
    assert client._url("/v1/about") == "https://ff.example.com/firefly/api/v1/about"


# ===== Routes =====


def test_get_shortcuts(client) -> None:
    resp = client.get("/firefly/shortcuts")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    assert "\n  " in resp.text
    shortcuts = resp.json()
    assert [s["shortcut_id"] for s in shortcuts] == [0, 1]
    assert shortcuts[0] == {
        "shortcut_id": 0,
        "shortcut_name": "Coffee",
        "shortcut_icon": "cup",
        "name": "Coffee",
        "source": "Checking",
        "destination": "Corner Cafe",
        "amount": 3.5,
        "budget": "Food",
        "category": "Coffee",
    }
    assert shortcuts[1]["amount"] is None


def test_add_transaction(monkeypatch, make_response, client) -> None:
    fake = _FakeFirefly(make_response)
    monkeypatch.setattr("requests.request", fake)

    resp = client.post("/firefly/add-transaction", json={"shortcut_id": 0})

    assert resp.status_code == 200
    assert resp.json() == {"data": {"id": "99"}}
    assert [c.method for c in fake.calls] == ["GET", "POST"]
    store = fake.calls[1]
    assert store.url == "https://ff.example.com/api/v1/transactions"
    assert store.headers["Authorization"] == "Bearer secret-token"
    split = store.json["transactions"][0]
    assert split["budget_id"] == "12"
    assert split["amount"] == "3.5"
    assert split["type"] == "withdrawal"


def test_add_transaction_with_override_and_no_budget(monkeypatch, make_response, client) -> None:
    fake = _FakeFirefly(make_response)
    monkeypatch.setattr("requests.request", fake)

    resp = client.post("/firefly/add-transaction", json={"shortcut_id": 1, "amount_override": 2.8})

    assert resp.status_code == 200
    assert [c.method for c in fake.calls] == ["POST"]
    split = fake.calls[0].json["transactions"][0]
    assert split["amount"] == "2.8"
    assert split["budget_id"] is None
    assert split["description"] == "Bus ticket"


def test_add_transaction_unknown_shortcut(monkeypatch, make_response, client) -> None:
    fake = _FakeFirefly(make_response)
    monkeypatch.setattr("requests.request", fake)

    resp = client.post("/firefly/add-transaction", json={"shortcut_id": 5})

    assert resp.status_code == 400
    assert fake.calls == []


def test_add_transaction_without_amount(monkeypatch, make_response, client) -> None:
    fake = _FakeFirefly(make_response)
    monkeypatch.setattr("requests.request", fake)

    resp = client.post("/firefly/add-transaction", json={"shortcut_id": 1})

    assert resp.status_code == 400
    assert fake.calls == []


def test_add_transaction_unknown_budget(monkeypatch, make_response, client) -> None:
    fake = _FakeFirefly(make_response, budgets={"data": []})
    monkeypatch.setattr("requests.request", fake)

    resp = client.post("/firefly/add-transaction", json={"shortcut_id": 0})

    assert resp.status_code == 500
    assert [c.method for c in fake.calls] == ["GET"]


def test_add_transaction_upstream_rejects(monkeypatch, make_response, client) -> None:
    monkeypatch.setattr("requests.request", _FakeFirefly(make_response, store_status=422))

    resp = client.post("/firefly/add-transaction", json={"shortcut_id": 0})

    assert resp.status_code == 500
    assert resp.json()["error"] == "Firefly request failed"


def test_add_transaction_validates_body(client) -> None:
    resp = client.post("/firefly/add-transaction", json={"amount_override": 1})
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "Invalid request data"
    json.dumps(body["details"])
