"""Proxy data models for the proxy registry."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, model_validator


@dataclass(frozen=True)
class ProxyCredentials:
    """Username/password pair for an authenticated proxy."""

    username: str
    password: str = ""

    def __repr__(self) -> str:
        return f"ProxyCredentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class ProxyDescriptor:
    """A named egress route a browsing session may be bound to."""

    id: str
    name: str
    server: str
    credentials: ProxyCredentials | None = None
    active: bool = True

    def summary(self) -> dict[str, str]:
        """Read-only projection used for diagnostics."""
        return {"id": self.id, "name": self.name, "server": self.server}

    def to_playwright(self) -> dict[str, str]:
        """Return the ``proxy=`` parameter for Playwright launch/new_context."""
        settings = {"server": self.server}
        if self.credentials is not None:
            settings["username"] = self.credentials.username
            settings["password"] = self.credentials.password
        return settings


# ---------------------------------------------------------------------------
# Configuration document models
# ---------------------------------------------------------------------------


class CredentialsRecord(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    username: str
    password: str = ""


class ProxyRecord(BaseModel):
    """A single entry of the ``proxies`` list in the configuration document.

    Credentials may be given Playwright-style (``username``/``password`` on the
    record) or nested under ``credentials``.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(min_length=1)
    name: str = ""
    server: str = Field(min_length=1)
    username: str | None = None
    password: str | None = None
    credentials: CredentialsRecord | None = None
    active: bool | None = True

    @model_validator(mode="after")
    def _merge_flat_credentials(self) -> "ProxyRecord":
        if self.credentials is None and self.username:
            self.credentials = CredentialsRecord(
                username=self.username, password=self.password or ""
            )
        return self

    def to_descriptor(self) -> ProxyDescriptor:
        credentials = None
        if self.credentials is not None:
            credentials = ProxyCredentials(
                username=self.credentials.username,
                password=self.credentials.password,
            )
        return ProxyDescriptor(
            id=self.id,
            name=self.name or self.id,
            server=self.server,
            credentials=credentials,
            active=self.active is not False,
        )
