"""
GitHub OAuth scopes and named scope groups.
Config files refer to scopes by enum name (e.g. USER_EMAIL); GitHub receives the value (user:email).
"""
from dataclasses import dataclass, field
from enum import Enum


class Scope(Enum):
    DEFAULT = ("", "Read-only access to public information")
    USER = ("user", "Read/write access to profile info only")
    USER_EMAIL = ("user:email", "Read access to a user's email addresses")
    USER_FOLLOW = ("user:follow", "Access to follow or unfollow other users")
    PUBLIC_REPO = ("public_repo", "Read/write access to code, commit statuses and deployments in public repositories")
    REPO = ("repo", "Read/write access to code, commit statuses and deployments in public and private repositories")
    REPO_DEPLOYMENT = ("repo_deployment", "Access to deployment statuses for public and private repositories")
    REPO_STATUS = ("repo:status", "Read/write access to commit statuses in public and private repositories")
    DELETE_REPO = ("delete_repo", "Access to delete adminable repositories")
    NOTIFICATIONS = ("notifications", "Read access to a user's notifications")
    GIST = ("gist", "Write access to gists")
    READ_REPO_HOOK = ("read:repo_hook", "Read access to hooks in public or private repositories")
    WRITE_REPO_HOOK = ("write:repo_hook", "Read/write access to hooks in public or private repositories")
    ADMIN_REPO_HOOK = ("admin:repo_hook", "Read/write/ping/delete access to hooks in public or private repositories")
    ADMIN_ORG_HOOK = ("admin:org_hook", "Read/write/ping/delete access to organization hooks")
    READ_ORG = ("read:org", "Read-only access to organization membership, teams and projects")
    WRITE_ORG = ("write:org", "Publicize and unpublicize organization membership")
    ADMIN_ORG = ("admin:org", "Fully manage organization, teams and memberships")
    READ_PUBLIC_KEY = ("read:public_key", "List and view details for public keys")
    WRITE_PUBLIC_KEY = ("write:public_key", "Create, list and view details for public keys")
    ADMIN_PUBLIC_KEY = ("admin:public_key", "Fully manage public keys")
    READ_GPG_KEY = ("read:gpg_key", "List and view details for GPG keys")
    WRITE_GPG_KEY = ("write:gpg_key", "Create, list and view details for GPG keys")
    ADMIN_GPG_KEY = ("admin:gpg_key", "Fully manage GPG keys")

    def __init__(self, scope: str, description: str):
        self.scope = scope
        self.description = description


# Config token -> Scope. Exact, case-sensitive names only.
SCOPES_BY_NAME: dict[str, Scope] = {s.name: s for s in Scope}


def parse_scope(token: str) -> Scope | None:
    """Scope for a config token, or None if the token is not a known scope name."""
    return SCOPES_BY_NAME.get(token)


def scopes_param(scopes) -> str:
    """GitHub `scope` request parameter: comma-separated values, DEFAULT contributes nothing."""
    return ",".join(s.scope for s in scopes if s.scope)


@dataclass(frozen=True)
class ScopeKey:
    """Named scope group. Identity is the config key name; description and sequence are display metadata."""

    name: str
    description: str = field(default="", compare=False)
    sequence: int = field(default=0, compare=False)
