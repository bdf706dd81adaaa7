from __future__ import annotations

import json

import pytest
import requests
from fastapi.testclient import TestClient

from reasonable_excuse.main import create_app
from reasonable_excuse.models.settings import ServerSettings


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def pat_file(tmp_path):
    path = tmp_path / "firefly-pat"
    path.write_text("secret-token\n", encoding="utf-8")
    return path


@pytest.fixture
def settings_data(upload_dir, pat_file) -> dict:
    return {
        "address": "127.0.0.1:3000",
        "allow_origin": "https://home.example.com",
        "upload": {
            "route": "/upload",
            "target_dir": str(upload_dir),
            "filename_length": 6,
        },
        "firefly_shortcuts": {
            "route": "/firefly",
            "firefly_url": "https://ff.example.com",
            "pat_file": str(pat_file),
            "shortcuts": [
                {
                    "shortcut_name": "Coffee",
                    "shortcut_icon": "cup",
                    "name": "Coffee",
                    "source": "Checking",
                    "destination": "Corner Cafe",
                    "amount": 3.5,
                    "budget": "Food",
                    "category": "Coffee",
                },
                {
                    "shortcut_name": "Bus",
                    "shortcut_icon": "bus",
                    "name": "Bus ticket",
                    "source": "Checking",
                    "destination": "Transit",
                },
            ],
        },
        "calendar": {
            "route": "/calendar",
            "base_url": "https://cal.example.com/export.ics?lang=en",
            "pass_param": "token",
            "filter": r"(?s)BEGIN:VEVENT(?:(?!END:VEVENT).)*?SUMMARY:Private.*?END:VEVENT\r?\n",
        },
    }


@pytest.fixture
def settings(settings_data) -> ServerSettings:
    return ServerSettings.model_validate(settings_data)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def make_response():
    """Build a real ``requests.Response`` carrying ``body``."""

    def _make(status_code: int, body, content_type: str = "application/json") -> requests.Response:
        resp = requests.Response()
        resp.status_code = status_code
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        resp._content = body.encode("utf-8") if isinstance(body, str) else body
        resp.headers["Content-Type"] = content_type
        return resp

    return _make
