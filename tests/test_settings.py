from __future__ import annotations

import pytest
from pydantic import ValidationError

from reasonable_excuse.models.settings import ServerSettings, parse_address


def test_parse_address_ipv4_and_ipv6() -> None:
    assert parse_address("127.0.0.1:3000") == ("127.0.0.1", 3000)
    assert parse_address("0.0.0.0:80") == ("0.0.0.0", 80)
    assert parse_address("[::1]:8080") == ("::1", 8080)


@pytest.mark.parametrize(
    "address",
    ["localhost:3000", "127.0.0.1", "127.0.0.1:http", "127.0.0.1:70000", "::1:80", ""],
)
def test_parse_address_rejects_invalid(address) -> None:
    with pytest.raises(ValueError, match="Could not parse server address"):
        parse_address(address)


def test_host_and_port_properties(settings) -> None:
    assert settings.host == "127.0.0.1"
    assert settings.port == 3000


def test_shortcut_ids_follow_config_order(settings) -> None:
    shortcuts = settings.firefly_shortcuts.shortcuts
    assert [s.shortcut_id for s in shortcuts] == [0, 1]
    assert [s.shortcut_name for s in shortcuts] == ["Coffee", "Bus"]


def test_optional_shortcut_fields_default_to_none(settings) -> None:
    bus = settings.firefly_shortcuts.shortcuts[1]
    assert bus.amount is None
    assert bus.budget is None
    assert bus.category is None


def test_firefly_url_gets_trailing_slash(settings) -> None:
    assert settings.firefly_shortcuts.firefly_url == "https://ff.example.com/"


def test_route_trailing_slash_is_stripped(settings_data) -> None:
    settings_data["upload"]["route"] = "/files/"
    settings = ServerSettings.model_validate(settings_data)
    assert settings.upload.route == "/files"


@pytest.mark.parametrize(
    "route", ["upload", "/", "/health", "/config/", "/pcs", "/stats", "/stats/performance"]
)
def test_invalid_routes_are_rejected(settings_data, route) -> None:
    settings_data["upload"]["route"] = route
    with pytest.raises(ValidationError):
        ServerSettings.model_validate(settings_data)


def test_route_groups_must_not_share_a_route(settings_data) -> None:
    settings_data["calendar"]["route"] = "/upload"
    with pytest.raises(ValidationError, match="already used by upload"):
        ServerSettings.model_validate(settings_data)


def test_filename_length_must_be_positive(settings_data) -> None:
    settings_data["upload"]["filename_length"] = 0
    with pytest.raises(ValidationError):
        ServerSettings.model_validate(settings_data)


def test_unknown_fields_are_rejected(settings_data) -> None:
    settings_data["calendar"]["extra"] = "x"
    with pytest.raises(ValidationError):
        ServerSettings.model_validate(settings_data)


def test_route_groups_are_optional() -> None:
    settings = ServerSettings.model_validate({"address": "127.0.0.1:3000"})
    assert settings.route_groups() == []
    assert settings.allow_origin is None


def test_calendar_base_url_must_be_http(settings_data) -> None:
    settings_data["calendar"]["base_url"] = "ftp://cal.example.com/feed"
    with pytest.raises(ValidationError):
        ServerSettings.model_validate(settings_data)


def test_reserved_route_message(settings_data) -> None:
    settings_data["upload"]["route"] = "/health"
    with pytest.raises(ValidationError, match="reserved for /health"):
        ServerSettings.model_validate(settings_data)


def test_route_beside_reserved_path_is_allowed(settings_data) -> None:
    settings_data["upload"]["route"] = "/statsfiles"
    assert ServerSettings.model_validate(settings_data).upload.route == "/statsfiles"
