"""
Process configuration for the GitHub OAuth service. No secrets here; clientId and clientSecret
come from the gerrit.config / secure.config files.
"""
import os

# gerrit.config with the [auth] and [github] sections
CONFIG_PATH = os.environ.get("GITHUB_OAUTH_CONFIG", "etc/gerrit.config")

# Optional secure.config layered on top of CONFIG_PATH (usually holds github.clientSecret)
SECURE_CONFIG_PATH = os.environ.get("GITHUB_OAUTH_SECURE_CONFIG", "etc/secure.config")

# Seconds a login state stays valid between /login and the /oauth callback
FLOW_TTL_SECONDS = int(os.environ.get("GITHUB_OAUTH_FLOW_TTL", "600"))
