"""
Configuration errors raised while resolving the GitHub OAuth settings.
All of them are fatal: the application must not start with a partial config.
"""


class OAuthConfigError(ValueError):
    """Base class; `key` is the offending `section.name`."""

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key


class MissingRequiredValue(OAuthConfigError):
    def __init__(self, key: str, message: str | None = None):
        super().__init__(key, message or f"`{key}` must be provided")


class UnknownScopeToken(OAuthConfigError):
    def __init__(self, key: str, token: str):
        super().__init__(key, f"Unknown GitHub scope '{token}' in `{key}`")
        self.token = token


class DuplicateScopeKey(OAuthConfigError):
    def __init__(self, key: str):
        super().__init__(key, f"Scope group `{key}` is defined more than once")


class InvalidConfigValue(OAuthConfigError):
    def __init__(self, key: str, value: str, expected: str):
        super().__init__(key, f"Invalid value for `{key}`: '{value}' (expected {expected})")
        self.value = value
