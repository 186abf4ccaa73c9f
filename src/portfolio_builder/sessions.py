from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable

from portfolio_builder.config import settings
from portfolio_builder.generation import PortfolioEvaluation
from portfolio_builder.models import seed_document
from portfolio_builder.preview.render import LivePreview
from portfolio_builder.store import PortfolioStore, new_item_id

logger = logging.getLogger(__name__)


@dataclass
class Notice:
    kind: str  # success|error
    title: str
    message: str = ""


@dataclass
class Session:
    session_id: str
    store: PortfolioStore
    preview: LivePreview
    notices: list[Notice] = field(default_factory=list)
    skill_suggestions: list[str] = field(default_factory=list)
    cover_letter: str = ""
    evaluation: PortfolioEvaluation | None = None

    def notify(self, kind: str, title: str, message: str = "") -> None:
        self.notices.append(Notice(kind=kind, title=title, message=message))

    def pop_notices(self) -> list[Notice]:
        out, self.notices = self.notices, []
        return out


class SessionRegistry:
    """
    In-memory sessions; each one owns an independent store seeded on first use.
    Bounded: sessions idle longer than `ttl_s` are dropped, and past `max_sessions`
    the least recently used one goes.
    """

    def __init__(
        self,
        id_factory: Callable[[], str] | None = None,
        max_sessions: int | None = None,
        ttl_s: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._id_factory = id_factory or new_item_id
        self.max_sessions = max_sessions if max_sessions is not None else settings.max_sessions
        self.ttl_s = ttl_s if ttl_s is not None else settings.session_ttl_s
        self._clock = clock
        # session id -> (session, last seen); oldest first.
        self._sessions: OrderedDict[str, tuple[Session, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def new_session_id(self) -> str:
        return uuid.uuid4().hex

    def get(self, session_id: str) -> Session:
        now = self._clock()
        self._evict_idle(now)
        entry = self._sessions.get(session_id)
        if entry is None:
            store = PortfolioStore(seed_document(self._id_factory), id_factory=self._id_factory)
            sess = Session(session_id=session_id, store=store, preview=LivePreview(store))
        else:
            sess = entry[0]
        self._sessions[session_id] = (sess, now)
        self._sessions.move_to_end(session_id)
        while len(self._sessions) > self.max_sessions:
            oldest = next(iter(self._sessions))
            logger.info("evicting session %s (over %d sessions)", oldest, self.max_sessions)
            self.drop(oldest)
        return sess

    def drop(self, session_id: str) -> None:
        entry = self._sessions.pop(session_id, None)
        if entry is not None:
            entry[0].preview.close()

    def _evict_idle(self, now: float) -> None:
        while self._sessions:
            oldest, (_, last_seen) = next(iter(self._sessions.items()))
            if now - last_seen <= self.ttl_s:
                break
            logger.info("evicting idle session %s", oldest)
            self.drop(oldest)
