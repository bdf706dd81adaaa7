"""
Route Configuration Models

Pydantic models for the settings read from config.kdl. Each route group is
optional; a group is only mounted when its block is present.
"""

import ipaddress
from pathlib import Path
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Paths served by the system routes
RESERVED_ROUTES = ("/health", "/config", "/pcs", "/stats/performance")


def parse_address(address: str) -> Tuple[str, int]:
    """
    Split a socket address into host and port.

    Accepts ``1.2.3.4:80`` and ``[::1]:80``. The host must be an IP literal.

    Raises:
        ValueError: If the address cannot be parsed
    """
    host, sep, port = address.strip().rpartition(":")
    if not sep or not host:
        raise ValueError(f"Could not parse server address: {address}")

    try:
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
            ipaddress.IPv6Address(host)
        else:
            ipaddress.IPv4Address(host)
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Could not parse server address: {address}")

    if not 0 <= port_number <= 65535:
        raise ValueError(f"Could not parse server address: {address}")

    return host, port_number


def _check_http_url(value: str) -> str:
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"must be an absolute http(s) URL, got '{value}'")
    return value


class RouteSettings(BaseModel):
    """Common base for route groups mounted under a path prefix."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    route: str = Field(..., description="Path the route group is mounted at")

    @field_validator("route")
    @classmethod
    def _normalize_route(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"route must start with '/', got '{value}'")
        value = value.rstrip("/")
        if not value:
            raise ValueError("route must not be '/'")
        for reserved in RESERVED_ROUTES:
            if value == reserved or reserved.startswith(value + "/"):
                raise ValueError(f"route '{value}' is reserved for {reserved}")
        return value


class UploadSettings(RouteSettings):
    """
    Upload route group.

    Attributes:
        target_dir: Directory uploaded files are written to
        filename_length: Number of random characters in generated names
    """
    target_dir: Path = Field(..., description="Upload target directory")
    filename_length: int = Field(..., gt=0, strict=True, description="Generated filename length")


class Shortcut(BaseModel):
    """
    A pre-filled Firefly withdrawal.

    ``shortcut_id`` is not read from the config file; it is the shortcut's
    position among the configured shortcuts.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    shortcut_id: int = Field(0, ge=0)
    shortcut_name: str
    shortcut_icon: str
    name: str
    source: str
    destination: str
    amount: Optional[float] = Field(None, strict=True)
    budget: Optional[str] = None
    category: Optional[str] = None


class FireflySettings(RouteSettings):
    """
    Firefly shortcut route group.

    Attributes:
        firefly_url: Base URL of the Firefly III instance (``api/`` is appended)
        pat_file: File holding the personal access token
        shortcuts: Shortcuts in config order
    """
    firefly_url: str = Field(..., description="Firefly III base URL")
    pat_file: Path = Field(..., description="Personal access token file")
    shortcuts: List[Shortcut] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _assign_shortcut_ids(cls, data):
        if isinstance(data, dict) and isinstance(data.get("shortcuts"), list):
            data = dict(data)
            data["shortcuts"] = [
                {**shortcut, "shortcut_id": index} if isinstance(shortcut, dict) else shortcut
                for index, shortcut in enumerate(data["shortcuts"])
            ]
        return data

    @field_validator("firefly_url")
    @classmethod
    def _normalize_firefly_url(cls, value: str) -> str:
        _check_http_url(value)
        return value if value.endswith("/") else value + "/"


class CalendarSettings(RouteSettings):
    """
    Calendar proxy route group.

    Attributes:
        base_url: Upstream iCal feed URL
        pass_param: Query parameter forwarded to the upstream
        filter: Regular expression; matches are removed from the feed
    """
    base_url: str = Field(..., description="Upstream calendar URL")
    pass_param: str = Field(..., min_length=1, description="Forwarded query parameter")
    filter: str = Field(..., description="Regex of text to strip from the feed")

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        return _check_http_url(value)


class ServerSettings(BaseModel):
    """
    Top-level server configuration.

    Attributes:
        address: Socket address to listen on
        allow_origin: Value for Access-Control-Allow-Origin, if any
        upload: Upload route group
        firefly_shortcuts: Firefly shortcut route group
        calendar: Calendar proxy route group
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    address: str = Field(..., description="host:port to bind to")
    allow_origin: Optional[str] = Field(None, description="CORS allowed origin")
    upload: Optional[UploadSettings] = None
    firefly_shortcuts: Optional[FireflySettings] = None
    calendar: Optional[CalendarSettings] = None

    @field_validator("address")
    @classmethod
    def _validate_address(cls, value: str) -> str:
        parse_address(value)
        return value.strip()

    @model_validator(mode="after")
    def _check_route_collisions(self):
        seen = {}
        for group, settings in self.route_groups():
            if settings.route in seen:
                raise ValueError(
                    f"{group} route '{settings.route}' is already used by {seen[settings.route]}"
                )
            seen[settings.route] = group
        return self

    def route_groups(self) -> List[Tuple[str, RouteSettings]]:
        """Configured route groups as (name, settings) pairs."""
        groups = [
            ("upload", self.upload),
            ("firefly_shortcuts", self.firefly_shortcuts),
            ("calendar", self.calendar),
        ]
        return [(name, settings) for name, settings in groups if settings is not None]

    @property
    def host(self) -> str:
        return parse_address(self.address)[0]

    @property
    def port(self) -> int:
        return parse_address(self.address)[1]
