from typing import Optional


class Warning(Exception): ...
class Error(Exception): ...


class InterfaceError(Error):
    """
    Exception raised for errors that are related to the database interface
    rather than the database itself. (e.g., misuse of the DB-API, driver bugs)
    """

    pass


class DatabaseError(Error): ...
class ProgrammingError(DatabaseError): ...


# Subclasses of DatabaseError


class DataError(DatabaseError):
    """
    Exception raised for errors that are due to problems with the
    processed data like division by zero, numeric value out of range, etc.
    """

    pass


class OperationalError(DatabaseError):
    """
    Exception raised for errors that are related to the database's operation
    and not necessarily under the programmer's control, e.g. an unexpected
    disconnect occurs, the gateway answers with a non-2xx status, etc.
    """

    pass


class IntegrityError(DatabaseError):
    """
    Exception raised when the relational integrity of the database is affected,
    e.g. a foreign key check fails, duplicate key, etc.
    """

    pass


class InternalError(DatabaseError):
    """
    Exception raised when the database encounters an internal error,
    e.g. the cursor is not valid anymore, the transaction is out of sync, etc.
    """

    pass


class NotSupportedError(DatabaseError):
    """
    Exception raised in case a method or database API was used which is
    not supported by the driver, e.g. requesting a .rollback() or a prepared
    statement. Raised before any network activity.
    """

    pass


# Driver specific errors


class ConfigurationError(InterfaceError):
    """
    Exception raised when the connection configuration string or the
    connection parameters are malformed.
    """

    pass


class ProtocolError(InterfaceError):
    """
    Exception raised when the gateway response does not follow the wire
    protocol: malformed JSON, a missing session, result, fields or rows,
    undecodable row values.
    """

    pass


class TransportError(OperationalError):
    """
    Exception raised when an exchange fails below the protocol: a network
    failure (status_code is None) or a non-2xx HTTP status.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: bytes = b""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class QueryCancelled(OperationalError):
    """
    Exception raised when the caller's deadline expires while an exchange
    is pending.
    """

    pass


class ApplicationError(DatabaseError):
    """
    Exception raised when the gateway reports an `error` object.
    `message` holds the server message, or "unknown error" when it sent none.
    """

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.message = message
