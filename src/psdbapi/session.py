import enum
import logging
from typing import Callable, Optional

from .exceptions import ProtocolError

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    AWAITING_SESSION = "awaiting_session"
    ACTIVE = "active"


class SessionManager:
    """
    Owns the opaque session a gateway hands out. The bytes are stored and
    replayed as-is, never inspected. Not thread safe: one in-flight exchange
    per connection.
    """

    def __init__(self) -> None:
        self._token: Optional[bytes] = None

    @property
    def token(self) -> Optional[bytes]:
        return self._token

    @property
    def state(self) -> SessionState:
        if self._token is None:
            return SessionState.AWAITING_SESSION
        return SessionState.ACTIVE

    def update(self, session: Optional[bytes]) -> None:
        """Replace the stored session with the one a response carried, if any."""
        if session is None:
            return
        if self._token is not None and self._token != session:
            logger.debug("session rotated by gateway")
        self._token = bytes(session)

    def clear(self) -> None:
        self._token = None

    def ensure(self, create: Callable[[], Optional[bytes]]) -> bytes:
        """
        Return the current session, running the `create` exchange first when
        none is held. `create` returns the session its response carried.
        """
        if self._token is not None:
            return self._token

        logger.debug("no session held, creating one")
        return self.refresh(create)

    def refresh(self, create: Callable[[], Optional[bytes]]) -> bytes:
        """
        Run the `create` exchange unconditionally. The held session is only
        replaced once a new one arrives, so a failed refresh keeps it.
        """
        session = create()
        if session is None:
            raise ProtocolError("create session: missing session")
        self.update(session)
        return self._token
