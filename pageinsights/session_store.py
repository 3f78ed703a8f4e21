"""Persistence for the single logged-in session."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import pydantic

from .config import config
from .models import Session


logger = logging.getLogger(__name__)


class SessionStore:
    """Load, save and clear the session blob kept in one JSON file."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else config.SESSION_FILE

    def restore(self) -> Optional[Session]:
        """Return the stored session, or None if missing, malformed or expired."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return None

        try:
            session = Session.model_validate_json(raw)
        except pydantic.ValidationError as e:
            logger.warning("Ignoring malformed session file %s: %d errors", self.path, e.error_count())
            return None

        if session.is_expired():
            logger.info("Stored session for %s has expired", session.subject_id)
            return None
        return session

    def persist(self, session: Session) -> None:
        """Replace the stored session in one step."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(session.model_dump_json())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
