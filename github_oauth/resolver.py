"""
Resolve the GitHub OAuth settings from gerrit.config into an immutable snapshot.
Required values are validated up front; a failure raises and no snapshot is produced.
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType
from typing import Any, Mapping

from github_oauth.canonical_url import CanonicalUrlProvider
from github_oauth.errors import DuplicateScopeKey, MissingRequiredValue, UnknownScopeToken
from github_oauth.raw_config import RawConfig
from github_oauth.scopes import Scope, ScopeKey, parse_scope

logger = logging.getLogger(__name__)

CONF_SECTION = "github"
AUTH_SECTION = "auth"

GITHUB_OAUTH_AUTHORIZE = "/login/oauth/authorize"
GITHUB_OAUTH_ACCESS_TOKEN = "/login/oauth/access_token"
GITHUB_GET_USER = "/user"
OAUTH_FINAL = "/oauth"
LOGIN = "/login"
LOGOUT = "/logout"
GITHUB_URL_DEFAULT = "https://github.com"
GITHUB_API_URL_DEFAULT = "https://api.github.com"
SCOPE_SELECTION_DEFAULT = "/plugins/github-plugin/static/scope.html"

# auth.type value that turns the integration on
AUTH_TYPE_HTTP = "HTTP"

SCOPES_PREFIX = "scopes"
DESCRIPTION_SUFFIX = "Description"
SEQUENCE_SUFFIX = "Sequence"
# Scope group used when the user is not offered a choice
DEFAULT_SCOPES_KEY = ScopeKey(SCOPES_PREFIX)


def trim_trailing_slash(url: str) -> str:
    return url.rstrip("/")


@dataclass(frozen=True)
class GitHubOAuthConfig:
    github_url: str
    github_api_url: str
    client_id: str
    client_secret: str = field(repr=False)
    http_header: str
    oauth_http_header: str | None
    logout_redirect_url: str | None
    scope_selection_path: str
    enabled: bool
    scopes: Mapping[ScopeKey, tuple[Scope, ...]]
    sorted_scope_keys: tuple[ScopeKey, ...]
    file_update_max_retry_count: int
    file_update_max_retry_interval_msec: int
    http_connection_timeout_ms: int
    http_read_timeout_ms: int
    canonical_url: CanonicalUrlProvider | None = field(default=None, repr=False, compare=False)

    @property
    def oauth_url(self) -> str:
        return self.github_url + GITHUB_OAUTH_AUTHORIZE

    @property
    def access_token_url(self) -> str:
        return self.github_url + GITHUB_OAUTH_ACCESS_TOKEN

    @property
    def user_api_url(self) -> str:
        return self.github_api_url + GITHUB_GET_USER

    def _canonical_prefix(self, request: Any) -> str:
        if request is None or self.canonical_url is None:
            return ""
        return trim_trailing_slash(self.canonical_url.get(request))

    def final_redirect_url(self, request: Any = None) -> str:
        """Where GitHub sends the user back to after authorization."""
        if request is None:
            return OAUTH_FINAL
        return self._canonical_prefix(request) + OAUTH_FINAL

    def scope_selection_url(self, request: Any = None) -> str:
        return self._canonical_prefix(request) + self.scope_selection_path

    def scope_key(self, name: str) -> ScopeKey | None:
        """The catalog's own key (with description and sequence) for a group name."""
        for key in self.sorted_scope_keys:
            if key.name == name:
                return key
        return None

    def scopes_for(self, name: str) -> tuple[Scope, ...]:
        return self.scopes.get(ScopeKey(name), ())

    def default_scopes(self) -> tuple[Scope, ...]:
        if not self.scopes:
            return ()
        return self.scopes.get(DEFAULT_SCOPES_KEY, ())

    def to_public_dict(self) -> dict:
        """JSON view for operators. Never includes the client secret."""
        return {
            "enabled": self.enabled,
            "github_url": self.github_url,
            "github_api_url": self.github_api_url,
            "oauth_url": self.oauth_url,
            "access_token_url": self.access_token_url,
            "client_id": self.client_id,
            "http_header": self.http_header,
            "oauth_http_header": self.oauth_http_header,
            "logout_redirect_url": self.logout_redirect_url,
            "scope_selection_path": self.scope_selection_path,
            "file_update_max_retry_count": self.file_update_max_retry_count,
            "file_update_max_retry_interval_msec": self.file_update_max_retry_interval_msec,
            "http_connection_timeout_ms": self.http_connection_timeout_ms,
            "http_read_timeout_ms": self.http_read_timeout_ms,
            "scopes": [
                {
                    "name": key.name,
                    "description": key.description,
                    "sequence": key.sequence,
                    "scopes": [s.name for s in self.scopes[key]],
                }
                for key in self.sorted_scope_keys
            ],
        }


def _required(raw_config: RawConfig, section: str, name: str, message: str) -> str:
    value = raw_config.get_string(section, None, name)
    if value is None or not value.strip():
        raise MissingRequiredValue(f"{section}.{name}", message)
    return value.strip()


def _millis(delta: timedelta) -> int:
    return int(delta / timedelta(milliseconds=1))


def parse_scopes_string(key: str, value: str | None) -> tuple[Scope, ...]:
    """
    Comma-separated scope names in the given order; blanks around names are ignored.
    Empty or absent value is an empty group. Raises UnknownScopeToken naming `key`.
    """
    if not value:
        return ()
    result = []
    for token in value.split(","):
        token = token.strip()
        if not token:
            continue
        scope = parse_scope(token)
        if scope is None:
            raise UnknownScopeToken(key, token)
        result.append(scope)
    return tuple(result)


def build_scope_catalog(raw_config: RawConfig) -> dict[ScopeKey, tuple[Scope, ...]]:
    """Every github.scopes* key except the *Description / *Sequence metadata keys, in discovery order."""
    catalog: dict[ScopeKey, tuple[Scope, ...]] = {}
    for name in raw_config.get_names(CONF_SECTION, recursive=True):
        if not name.startswith(SCOPES_PREFIX):
            continue
        if name.endswith(DESCRIPTION_SUFFIX) or name.endswith(SEQUENCE_SUFFIX):
            continue
        key = ScopeKey(
            name,
            raw_config.get_string(CONF_SECTION, None, name + DESCRIPTION_SUFFIX) or "",
            raw_config.get_int(CONF_SECTION, name + SEQUENCE_SUFFIX, 0),
        )
        if key in catalog:
            raise DuplicateScopeKey(f"{CONF_SECTION}.{name}")
        catalog[key] = parse_scopes_string(
            f"{CONF_SECTION}.{name}", raw_config.get_string(CONF_SECTION, None, name)
        )
        logger.debug("Scope group %s (sequence=%d): %s", name, key.sequence, [s.name for s in catalog[key]])
    return catalog


def sort_scope_keys(catalog: Mapping[ScopeKey, Any]) -> tuple[ScopeKey, ...]:
    # sorted() is stable: equal sequences keep discovery order
    return tuple(sorted(catalog, key=lambda k: k.sequence))


def resolve(raw_config: RawConfig, canonical_url: CanonicalUrlProvider | None = None) -> GitHubOAuthConfig:
    """Single resolution pass. Raises OAuthConfigError subclasses; never returns a partial config."""
    http_header = _required(
        raw_config, AUTH_SECTION, "httpHeader", "HTTP Header for GitHub user must be provided (auth.httpHeader)"
    )
    github_url = trim_trailing_slash(raw_config.get_string(CONF_SECTION, None, "url") or GITHUB_URL_DEFAULT)
    github_api_url = trim_trailing_slash(
        raw_config.get_string(CONF_SECTION, None, "apiUrl") or GITHUB_API_URL_DEFAULT
    )
    client_id = _required(raw_config, CONF_SECTION, "clientId", "GitHub `clientId` must be provided")
    client_secret = _required(raw_config, CONF_SECTION, "clientSecret", "GitHub `clientSecret` must be provided")

    auth_type = raw_config.get_string(AUTH_SECTION, None, "type")
    enabled = auth_type is not None and auth_type.strip().lower() == AUTH_TYPE_HTTP.lower()

    catalog = build_scope_catalog(raw_config)

    config = GitHubOAuthConfig(
        github_url=github_url,
        github_api_url=github_api_url,
        client_id=client_id,
        client_secret=client_secret,
        http_header=http_header,
        oauth_http_header=raw_config.get_string(AUTH_SECTION, None, "httpExternalIdHeader") or None,
        logout_redirect_url=raw_config.get_string(CONF_SECTION, None, "logoutRedirectUrl") or None,
        scope_selection_path=raw_config.get_string(CONF_SECTION, None, "scopeSelectionUrl")
        or SCOPE_SELECTION_DEFAULT,
        enabled=enabled,
        scopes=MappingProxyType(catalog),
        sorted_scope_keys=sort_scope_keys(catalog),
        file_update_max_retry_count=raw_config.get_int(CONF_SECTION, "fileUpdateMaxRetryCount", 3),
        file_update_max_retry_interval_msec=raw_config.get_int(CONF_SECTION, "fileUpdateMaxRetryIntervalMsec", 3000),
        http_connection_timeout_ms=_millis(
            raw_config.get_duration(CONF_SECTION, None, "httpConnectionTimeout", timedelta(seconds=30))
        ),
        http_read_timeout_ms=_millis(
            raw_config.get_duration(CONF_SECTION, None, "httpReadTimeout", timedelta(seconds=30))
        ),
        canonical_url=canonical_url,
    )
    logger.info(
        "Resolved GitHub OAuth config: url=%s enabled=%s scope groups=%s",
        config.github_url,
        config.enabled,
        [k.name for k in config.sorted_scope_keys],
    )
    return config
