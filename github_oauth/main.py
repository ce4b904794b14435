"""
GitHub OAuth login service.
Resolves the [auth]/[github] settings once at startup; serves /login, the /oauth callback, /logout
and the scope selection page.
"""
import configparser
import html
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from github_oauth.canonical_url import CanonicalWebUrl
from github_oauth.config import CONFIG_PATH, SECURE_CONFIG_PATH
from github_oauth.errors import OAuthConfigError
from github_oauth.flow_store import get_flow, store_flow
from github_oauth.oauth_protocol import build_authorize_url, generate_state
from github_oauth.raw_config import RawConfig
from github_oauth.resolver import (
    DEFAULT_SCOPES_KEY,
    LOGIN,
    LOGOUT,
    OAUTH_FINAL,
    SCOPE_SELECTION_DEFAULT,
    GitHubOAuthConfig,
    resolve,
)

logger = logging.getLogger(__name__)


def load_raw_config() -> RawConfig:
    """gerrit.config with secure.config layered on top."""
    base = RawConfig.from_file(CONFIG_PATH)
    return RawConfig.from_file(SECURE_CONFIG_PATH, base=base)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Resolve the OAuth config; an invalid config stops startup."""
    try:
        raw_config = load_raw_config()
        app.state.oauth_config = resolve(raw_config, CanonicalWebUrl.from_config(raw_config))
    except (OAuthConfigError, configparser.Error) as e:
        logger.error("Invalid GitHub OAuth configuration in %s: %s", CONFIG_PATH, e)
        raise
    yield


app = FastAPI(title="GitHub OAuth", version="0.1.0", lifespan=lifespan)


def get_oauth_config(request: Request) -> GitHubOAuthConfig:
    """Dependency: the snapshot resolved at startup."""
    return request.app.state.oauth_config


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{html.escape(title)}</title></head>
<body>
  <h1>{html.escape(title)}</h1>
  {body}
  <p><a href="/">Home</a></p>
</body>
</html>""",
        status_code=status_code,
    )


def _timeout(config: GitHubOAuthConfig) -> httpx.Timeout:
    return httpx.Timeout(
        config.http_read_timeout_ms / 1000,
        connect=config.http_connection_timeout_ms / 1000,
    )


def _json_body(r) -> dict | None:
    """JSON object body of a GitHub response, or None when it is not JSON (login walls, proxies)."""
    if not r.headers.get("content-type", "").startswith("application/json"):
        return None
    try:
        body = r.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "github_oauth"}


@app.get("/", response_class=HTMLResponse)
def home():
    """Home page with the login link."""
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>GitHub OAuth</title></head>
<body>
  <h1>GitHub OAuth</h1>
  <p><a href="{LOGIN}">Log in with GitHub</a></p>
</body>
</html>"""
    )


@app.get("/config")
def show_config(config: GitHubOAuthConfig = Depends(get_oauth_config)):
    """Resolved settings without the client secret."""
    return config.to_public_dict()


@app.get(SCOPE_SELECTION_DEFAULT, response_class=HTMLResponse)
def scope_selection(config: GitHubOAuthConfig = Depends(get_oauth_config)):
    """Lets the user pick one of the configured scope groups, lowest sequence first."""
    items = []
    for i, key in enumerate(config.sorted_scope_keys):
        checked = " checked" if i == 0 else ""
        label = html.escape(key.description or key.name)
        scopes = ", ".join(html.escape(s.scope or s.name) for s in config.scopes[key]) or "public information only"
        items.append(
            f'<li><label><input type="radio" name="scope" value="{html.escape(key.name)}"{checked}> '
            f"{label}</label> <small>({scopes})</small></li>"
        )
    if not items:
        return _page("Scope selection", "<p>No scope groups configured.</p>")
    return _page(
        "Scope selection",
        f"""<form method="get" action="{LOGIN}">
    <ul>{"".join(items)}</ul>
    <button type="submit">Log in with GitHub</button>
  </form>""",
    )


@app.get(LOGIN)
def login(
    request: Request,
    scope: str | None = None,
    config: GitHubOAuthConfig = Depends(get_oauth_config),
):
    """
    Redirect to GitHub's authorize endpoint with the chosen scope group.
    Without a choice, send the user to the selection page when more than the default group exists.
    """
    if not config.enabled:
        return _page("Not enabled", "<p>GitHub OAuth is not enabled (auth.type must be HTTP).</p>", 404)

    if scope is None:
        if any(k != DEFAULT_SCOPES_KEY for k in config.sorted_scope_keys):
            return RedirectResponse(url=config.scope_selection_url(request), status_code=302)
        scope = DEFAULT_SCOPES_KEY.name
        scopes = config.default_scopes()
    elif config.scope_key(scope) is None:
        return _page("Invalid request", f"<p>Unknown scope group '{html.escape(scope)}'.</p>", 400)
    else:
        scopes = config.scopes_for(scope)

    state = generate_state()
    store_flow(state, scope_key=scope)
    url = build_authorize_url(
        authorize_url=config.oauth_url,
        client_id=config.client_id,
        redirect_uri=config.final_redirect_url(request),
        scopes=scopes,
        state=state,
    )
    return RedirectResponse(url=url, status_code=302)


@app.get(OAUTH_FINAL, response_class=HTMLResponse)
def oauth_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    config: GitHubOAuthConfig = Depends(get_oauth_config),
):
    """
    GitHub redirects here with ?code&state (or ?error). Exchange the code, look up the GitHub user
    and return it in the configured identity headers.
    """
    if error:
        if state:
            get_flow(state)
        return _page("Login error", f"<p>{html.escape(error_description or error)}</p>", 400)
    if not state:
        return _page("Error", "<p>Missing state parameter.</p>", 400)
    flow = get_flow(state)
    if flow is None:
        return _page("Error", "<p>Invalid or expired state. Please try logging in again.</p>", 400)
    if not code:
        return _page("Error", "<p>Missing code parameter.</p>", 400)

    try:
        r = httpx.post(
            config.access_token_url,
            data={
                "client_id": config.client_id,
                "client_secret": config.client_secret,
                "code": code,
                "redirect_uri": config.final_redirect_url(request),
                "state": state,
            },
            headers={"Accept": "application/json"},
            timeout=_timeout(config),
        )
    except httpx.HTTPError as e:
        logger.warning("GitHub token exchange failed: %s", e)
        return _page("Token exchange failed", f"<p>{html.escape(str(e))}</p>", 502)

    data = _json_body(r)
    if data is None:
        logger.warning("GitHub token endpoint returned non-JSON response (HTTP %s)", r.status_code)
        return _page(
            "Token exchange failed",
            f"<p>GitHub returned an unexpected response (HTTP {r.status_code}). Check github.url.</p>",
            400,
        )
    access_token = data.get("access_token") if r.status_code == 200 else None
    if not access_token:
        err_desc = data.get("error_description") or data.get("error") or f"HTTP {r.status_code}"
        return _page("Token exchange failed", f"<p>{html.escape(str(err_desc))}</p>", 400)

    try:
        u = httpx.get(
            config.user_api_url,
            headers={"Authorization": f"token {access_token}", "Accept": "application/json"},
            timeout=_timeout(config),
        )
    except httpx.HTTPError as e:
        logger.warning("GitHub user lookup failed: %s", e)
        return _page("User lookup failed", f"<p>{html.escape(str(e))}</p>", 502)
    if u.status_code != 200:
        return _page("User lookup failed", f"<p>GitHub returned HTTP {u.status_code}.</p>", 502)

    user = _json_body(u)
    if user is None:
        logger.warning("GitHub user endpoint returned non-JSON response")
        return _page("User lookup failed", "<p>GitHub returned an unexpected response. Check github.apiUrl.</p>", 502)
    login_name = str(user.get("login", ""))
    granted = data.get("scope", "")
    headers = {config.http_header: login_name}
    if config.oauth_http_header and user.get("id") is not None:
        headers[config.oauth_http_header] = str(user["id"])
    logger.info("GitHub login %s with scope group %s (granted: %s)", login_name, flow.scope_key, granted)

    response = _page(
        "Login success",
        f"""<p>Signed in as <code>{html.escape(login_name)}</code>.</p>
  <p>Scope group: <code>{html.escape(flow.scope_key)}</code></p>
  <p>Granted scopes: <code>{html.escape(granted)}</code></p>
  <p><a href="{LOGOUT}">Log out</a></p>""",
    )
    response.headers.update(headers)
    return response


@app.get(LOGOUT)
def logout(config: GitHubOAuthConfig = Depends(get_oauth_config)):
    """Redirect to github.logoutRedirectUrl when configured."""
    return RedirectResponse(url=config.logout_redirect_url or "/", status_code=302)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "github_oauth.main:app",
        host="127.0.0.1",
        port=8080,
        reload=True,
    )
