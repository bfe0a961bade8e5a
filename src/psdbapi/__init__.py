"""
psdbapi – a PEP‑249‑compliant DB‑API driver for HTTP/JSON database gateways
"""

__version__ = "0.1.0"

# PEP‑249 module globals
apilevel    = "2.0"      # supported DB‑API level
threadsafety = 1         # threads may share the module, not connections
paramstyle  = "qmark"    # declared for PEP 249; parameters are rejected

# Convenience imports
from .config import ConnectionConfig
from .connection import Connection, Driver, connect, connect_from_env
from .cursor import Cursor, ResultSet
from .exceptions import (ApplicationError, ConfigurationError, DatabaseError, DataError,
    Error, IntegrityError, InterfaceError, InternalError, NotSupportedError,
    OperationalError, ProgrammingError, ProtocolError, QueryCancelled, TransportError,
    Warning)
from .protocol import Field
from .session import SessionState
from .transport import HTTPTransport

# What users get when they do `import psdbapi`:
__all__ = [
    "connect",
    "connect_from_env",
    "Driver",
    "Connection",
    "ConnectionConfig",
    "Cursor",
    "ResultSet",
    "Field",
    "SessionState",
    "HTTPTransport",
    "Warning",
    "Error",
    "InterfaceError",
    "DatabaseError",
    "DataError",
    "OperationalError",
    "IntegrityError",
    "InternalError",
    "ProgrammingError",
    "NotSupportedError",
    "ConfigurationError",
    "ProtocolError",
    "TransportError",
    "QueryCancelled",
    "ApplicationError",
    "apilevel",
    "threadsafety",
    "paramstyle",
    "__version__",
]
