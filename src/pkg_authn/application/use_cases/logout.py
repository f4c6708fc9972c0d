from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ...domain.ports import SessionRegistry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LogoutUseCase:
    sessions: SessionRegistry

    def execute(self, session_id: Optional[str], account_id: int) -> bool:
        """Invalidate the session, if any. Returns True when one was closed."""
        if not session_id:
            return False
        closed = self.sessions.invalidate_session(session_id)
        if closed:
            logger.info("Account %s logged out, session %s invalidated", account_id, session_id)
        else:
            logger.warning("Account %s logged out with unknown session %s", account_id, session_id)
        return closed
