from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from portfolio_builder.config import settings
from portfolio_builder.errors import PortfolioCorrupted, PortfolioNotFound
from portfolio_builder.models import PortfolioDocument, document_from_dict, document_to_dict

logger = logging.getLogger(__name__)


def _safe_session_id(session_id: str) -> str:
    # Prevent path traversal; session ids are opaque hex tokens.
    cleaned = os.path.basename(session_id or "").replace("..", "_")
    if not cleaned:
        raise ValueError("session id is empty")
    return cleaned


class PublishedStorage:
    """
    One key-value slot per session: `<data_dir>/sessions/<session_id>/<key>.json`.
    Written on publish, read by the public view.
    """

    def __init__(self, root_dir: Path | None = None, key: str | None = None) -> None:
        self.root_dir = Path(root_dir or settings.data_dir).resolve()
        self.sessions_dir = self.root_dir / "sessions"
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        self.key = key or settings.storage_key

    def path_for(self, session_id: str) -> Path:
        return self.sessions_dir / _safe_session_id(session_id) / f"{self.key}.json"

    def publish(self, session_id: str, doc: PortfolioDocument) -> Path:
        path = self.path_for(session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(document_to_dict(doc), indent=2), encoding="utf-8")
        tmp.replace(path)
        logger.info("published portfolio for session %s", session_id)
        return path

    def read(self, session_id: str) -> PortfolioDocument:
        path = self.path_for(session_id)
        if not path.exists():
            raise PortfolioNotFound("No portfolio data found. Please create your portfolio first.")
        try:
            return document_from_dict(json.loads(path.read_text("utf-8")))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("stored portfolio for session %s is unreadable: %s", session_id, e)
            raise PortfolioCorrupted("Could not load portfolio data. It might be corrupted.") from e
