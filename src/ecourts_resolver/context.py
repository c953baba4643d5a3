"""Process-local state shared by providers: imported cases and CAPTCHA sessions.

Nothing here is global. A :class:`ResolverContext` is created by the caller
(or by :func:`~ecourts_resolver.providers.factory.create_provider` when none
is passed) and handed to every provider that needs it; two contexts never
see each other's data.
"""

import dataclasses
import logging
from datetime import datetime, timezone

from ecourts_resolver.models import CanonicalCase, OrderRecord

logger = logging.getLogger(__name__)

SYNC_PENDING = "pending"
SYNC_ACTION_REQUIRED = "action_required"
SYNC_COMPLETED = "completed"
SYNC_FAILED = "failed"


class CaseStore:
    """In-memory store of imported cases, their orders, and sync status."""

    def __init__(self):
        self.cases: dict[str, CanonicalCase] = {}
        self.orders: dict[str, list[OrderRecord]] = {}
        self.sync_status: dict[str, str] = {}

    def set_sync_status(self, cnr: str, status: str) -> None:
        self.sync_status[cnr] = status
        logger.debug("Sync status for %s -> %s", cnr, status)

    def put_case(self, case: CanonicalCase) -> None:
        self.cases[case.cnr] = case

    def put_orders(self, cnr: str, orders: list[OrderRecord]) -> None:
        self.orders[cnr] = list(orders)

    def clear(self) -> None:
        self.cases.clear()
        self.orders.clear()
        self.sync_status.clear()


@dataclasses.dataclass
class CaptchaSession:
    session_id: str
    provider: str
    captcha_url: str
    created_at: datetime = dataclasses.field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class CaptchaSessions:
    """Open CAPTCHA challenges, keyed by portal session id."""

    def __init__(self):
        self._sessions: dict[str, CaptchaSession] = {}

    def record(self, session_id: str, provider: str, captcha_url: str) -> CaptchaSession:
        session = CaptchaSession(session_id, provider, captcha_url)
        self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> CaptchaSession | None:
        return self._sessions.get(session_id)

    def resolve(self, session_id: str) -> CaptchaSession | None:
        """Forget a session once the human has solved its CAPTCHA."""
        return self._sessions.pop(session_id, None)

    def clear(self) -> None:
        self._sessions.clear()


class ResolverContext:
    def __init__(
        self,
        store: CaseStore | None = None,
        captcha_sessions: CaptchaSessions | None = None,
    ):
        self.store = store if store is not None else CaseStore()
        self.captcha_sessions = (
            captcha_sessions if captcha_sessions is not None else CaptchaSessions()
        )

    def close(self) -> None:
        self.store.clear()
        self.captcha_sessions.clear()

    def __enter__(self) -> "ResolverContext":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
