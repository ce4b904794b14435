"""
GitHub OAuth web-flow helpers: state generation and the authorize redirect URL.
"""
import secrets
from urllib.parse import urlencode

from github_oauth.scopes import scopes_param


def generate_state() -> str:
    """Opaque value for CSRF protection; GitHub returns it unchanged on the callback."""
    return secrets.token_urlsafe(32)


def build_authorize_url(
    *,
    authorize_url: str,
    client_id: str,
    redirect_uri: str,
    scopes,
    state: str,
) -> str:
    """GitHub /login/oauth/authorize URL. `scope` is omitted when no scope beyond DEFAULT is requested."""
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "state": state,
    }
    scope = scopes_param(scopes)
    if scope:
        params["scope"] = scope
    return f"{authorize_url}?{urlencode(params)}"
