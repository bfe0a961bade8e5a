import logging
import time
from typing import Optional

from .config import ConnectionConfig, config_from_dsn, config_from_env
from .cursor import Cursor, ResultSet
from .exceptions import InterfaceError, NotSupportedError, QueryCancelled, TransportError
from .protocol import (
    EXECUTE_ENDPOINT,
    SESSION_ENDPOINT,
    Envelope,
    build_execute_body,
    build_headers,
    parse_response,
    read_result,
)
from .session import SessionManager, SessionState
from .transport import HTTPTransport

logger = logging.getLogger(__name__)


class Connection:
    """
    A connection to one gateway host. It holds the credentials and the
    current session; nothing is opened until the first query.

    A Connection must not be used from several threads at once: every
    exchange rewrites the stored session.
    """

    def __init__(self, config: ConnectionConfig, transport=None):
        self._config = config
        self._owns_transport = transport is None
        self._transport = transport if transport is not None else HTTPTransport()
        self._session = SessionManager()
        self._closed = False

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def session(self) -> Optional[bytes]:
        return self._session.token

    @property
    def session_state(self) -> SessionState:
        return self._session.state

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise InterfaceError("connection is closed")

    def _deadline(self, timeout: Optional[float]) -> Optional[float]:
        if timeout is None:
            timeout = self._config.timeout
        if timeout is None:
            return None
        return time.monotonic() + timeout

    def _exchange(self, endpoint: str, body: bytes, operation: str, deadline: Optional[float]) -> Envelope:
        """
        POST one request and parse the response. The session the response
        carries is stored before the deadline or its error object is looked at.
        """
        cfg = self._config
        remaining = None
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise QueryCancelled(f"{operation}: deadline exceeded before the request was sent")
        url = "https://" + cfg.host + endpoint
        headers = build_headers(cfg.host, cfg.username, cfg.password)

        logger.debug("%s: sending %d bytes to %s", operation, len(body), endpoint)
        status, resp_body = self._transport.send(url, headers, body, cfg.backend, remaining)
        if not 200 <= status < 300:
            text = resp_body.decode("utf-8", errors="replace")
            raise TransportError(f"{operation}: gateway API error: {status}\n{text}", status, resp_body)

        envelope = parse_response(resp_body, operation)
        self._session.update(envelope.session)
        # requests bounds each socket wait, not the whole exchange
        if deadline is not None and time.monotonic() > deadline:
            raise QueryCancelled(f"{operation}: deadline exceeded")
        envelope.raise_for_error()
        return envelope

    def _create_session(self, deadline: Optional[float]) -> Optional[bytes]:
        envelope = self._exchange(SESSION_ENDPOINT, b"{}", "create session", deadline)
        return envelope.session

    def create_session(self, timeout: Optional[float] = None) -> bytes:
        """Open a fresh session on the gateway; the held one is kept if this fails."""
        self._check_open()
        deadline = self._deadline(timeout)
        return self._session.refresh(lambda: self._create_session(deadline))

    def reset_session(self) -> None:
        """Forget the held session; the next query creates a new one."""
        self._session.clear()

    def query(self, text: str, timeout: Optional[float] = None) -> ResultSet:
        """
        Execute `text` and return its decoded result.

        `timeout` is the deadline in seconds for the whole call, session
        creation included, defaulting to the configured one; when it passes,
        QueryCancelled is raised.
        """
        self._check_open()
        deadline = self._deadline(timeout)
        session = self._session.ensure(lambda: self._create_session(deadline))

        envelope = self._exchange(EXECUTE_ENDPOINT, build_execute_body(text, session), "execute", deadline)
        fields, rows = read_result(envelope)
        logger.debug("execute: %d columns, %d rows", len(fields), len(rows))
        return ResultSet(fields, rows)

    def cursor(self) -> Cursor:
        self._check_open()
        return Cursor(self)

    def prepare(self, query: str):
        raise NotSupportedError("Prepare method not implemented")

    def begin(self):
        raise NotSupportedError("Begin method not implemented")

    def rollback(self):
        raise NotSupportedError("Rollback method not implemented")

    def commit(self) -> None:
        # No transactions, nothing to commit.
        self._check_open()

    def close(self) -> None:
        if self._closed:
            return
        self._session.clear()
        if self._owns_transport:
            self._transport.close()
        self._closed = True

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def connect(dsn: Optional[str] = None, *, transport=None, **params) -> Connection:
    """
    Initializes a connection to the gateway. No request is sent until the first query.

    Returns a Connection Object. `dsn` is a query string of username, password,
    host, backend and timeout; keyword parameters override its values.

    E.g. connect("username=u&password=p&host=db.example.com") or
    connect(host="db.example.com", username="u", password="p")
    """
    return Connection(config_from_dsn(dsn, **params), transport=transport)


def connect_from_env(env_file=None, *, transport=None) -> Connection:
    """Like connect(), with parameters read from PSDB_* environment variables."""
    return Connection(config_from_env(env_file), transport=transport)


class Driver:
    """
    Factory an application holds and opens connections through, instead of a
    process-wide driver registration.
    """

    def __init__(self, transport=None):
        self._transport = transport

    def open(self, dsn: str) -> Connection:
        return connect(dsn, transport=self._transport)
