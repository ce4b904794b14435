"""
Canonical web URL: the externally visible base URL of this service for an inbound request.
Uses gerrit.canonicalWebUrl when configured, otherwise the request's own base URL.
"""
from typing import Any, Protocol

from github_oauth.raw_config import RawConfig


class CanonicalUrlProvider(Protocol):
    def get(self, request: Any) -> str: ...


class CanonicalWebUrl:
    def __init__(self, configured: str | None = None):
        self.configured = configured or None

    @classmethod
    def from_config(cls, raw_config: RawConfig) -> "CanonicalWebUrl":
        return cls(raw_config.get_string("gerrit", None, "canonicalWebUrl"))

    def get(self, request: Any) -> str:
        if self.configured:
            return self.configured
        return str(request.base_url)
