"""
In-memory store for pending GitHub logins (state -> requested scope group).
Used between /login and the /oauth callback. Entries are single use and expire after a TTL.
"""
import threading
import time
from dataclasses import dataclass

from github_oauth.config import FLOW_TTL_SECONDS


@dataclass
class PendingFlow:
    scope_key: str
    created_at: float

    def expired(self) -> bool:
        return (time.monotonic() - self.created_at) > FLOW_TTL_SECONDS


_pending: dict[str, PendingFlow] = {}
_lock = threading.Lock()


def store_flow(state: str, scope_key: str) -> None:
    with _lock:
        _clean_expired()
        _pending[state] = PendingFlow(scope_key=scope_key, created_at=time.monotonic())


def get_flow(state: str) -> PendingFlow | None:
    with _lock:
        flow = _pending.pop(state, None)
    if flow is None or flow.expired():
        return None
    return flow


def _clean_expired() -> None:
    now = time.monotonic()
    expired = [s for s, f in _pending.items() if (now - f.created_at) > FLOW_TTL_SECONDS]
    for s in expired:
        del _pending[s]
