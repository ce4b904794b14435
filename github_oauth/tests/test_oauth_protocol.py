"""Tests for scope parsing, the authorize URL and the pending-flow store."""
import re
import time
from urllib.parse import parse_qs, urlsplit

import pytest

from github_oauth import flow_store
from github_oauth.flow_store import get_flow, store_flow
from github_oauth.oauth_protocol import build_authorize_url, generate_state
from github_oauth.scopes import SCOPES_BY_NAME, Scope, parse_scope, scopes_param


def test_parse_scope_exact_names_only():
    assert parse_scope("USER_EMAIL") is Scope.USER_EMAIL
    assert parse_scope("user_email") is None
    assert parse_scope("user:email") is None
    assert parse_scope("") is None


def test_every_scope_is_parseable_by_name():
    assert set(SCOPES_BY_NAME.values()) == set(Scope)
    for scope in Scope:
        assert parse_scope(scope.name) is scope
        assert scope.description


def test_scopes_param_uses_github_values():
    assert scopes_param([Scope.REPO, Scope.USER_EMAIL]) == "repo,user:email"
    assert scopes_param([Scope.DEFAULT]) == ""
    assert scopes_param([Scope.DEFAULT, Scope.READ_ORG]) == "read:org"
    assert scopes_param([]) == ""


def test_generate_state():
    s = generate_state()
    assert len(s) >= 32
    assert re.match(r"^[A-Za-z0-9_-]+$", s)
    assert generate_state() != s


def test_build_authorize_url_includes_required_params():
    url = build_authorize_url(
        authorize_url="https://github.com/login/oauth/authorize",
        client_id="id1",
        redirect_uri="https://review.example.com/oauth",
        scopes=[Scope.REPO, Scope.USER_EMAIL],
        state="mystate",
    )
    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://github.com/login/oauth/authorize"
    params = parse_qs(parts.query)
    assert params["client_id"] == ["id1"]
    assert params["redirect_uri"] == ["https://review.example.com/oauth"]
    assert params["scope"] == ["repo,user:email"]
    assert params["state"] == ["mystate"]


def test_build_authorize_url_without_scope():
    url = build_authorize_url(
        authorize_url="https://github.com/login/oauth/authorize",
        client_id="id1",
        redirect_uri="/oauth",
        scopes=(),
        state="s",
    )
    assert "scope=" not in url


def test_flow_is_single_use():
    store_flow("state-once", scope_key="scopesRepo")
    flow = get_flow("state-once")
    assert flow is not None
    assert flow.scope_key == "scopesRepo"
    assert get_flow("state-once") is None


def test_unknown_flow():
    assert get_flow("never-stored") is None


def test_expired_flow(monkeypatch):
    store_flow("state-old", scope_key="scopes")
    monkeypatch.setattr(flow_store, "FLOW_TTL_SECONDS", 0)
    time.sleep(0.01)
    assert get_flow("state-old") is None
