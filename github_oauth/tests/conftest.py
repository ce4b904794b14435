"""
Pytest configuration for github_oauth. Point the config paths at files that don't exist so nothing
on the developer machine leaks into tests; tests build their own RawConfig.
"""
import os

import pytest

os.environ["GITHUB_OAUTH_CONFIG"] = "/nonexistent/gerrit.config"
os.environ["GITHUB_OAUTH_SECURE_CONFIG"] = "/nonexistent/secure.config"


@pytest.fixture
def settings():
    """Minimal valid [auth]/[github] settings; tests add or remove keys as needed."""
    return {
        "auth": {"httpHeader": "X-User", "type": "HTTP"},
        "github": {"clientId": "id1", "clientSecret": "secret1"},
    }
