"""
Wire protocol of the database gateway.

Two POST endpoints under API_PREFIX, JSON in and out:

    CreateSession  {}                               -> {"session": {...}}
    Execute        {"query": "...", "session": {...}} -> {"session": {...}?, "result": {...}}
                                                       | {"session": {...}?, "error": {...}}

The session object is opaque: its source text is cut out of the response
body as sent and written back unchanged into the next Execute body.
"""

import base64
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import pydantic
from pydantic import BaseModel, ConfigDict, NonNegativeInt, ValidationError

from .exceptions import ApplicationError, ProtocolError
from .rows import RowValues, decode_row

API_PREFIX = "/psdb.v1alpha1.Database"
EXECUTE_ENDPOINT = API_PREFIX + "/Execute"
SESSION_ENDPOINT = API_PREFIX + "/CreateSession"
JSON_CONTENT_TYPE = "application/json"
USER_AGENT = "database-python"

UNKNOWN_ERROR = "unknown error"

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_decoder = json.JSONDecoder()


class Field(BaseModel):
    """One result column, as described by the gateway."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    type: str = ""
    table: str = ""
    column_length: NonNegativeInt = pydantic.Field(default=0, alias="columnLength")
    charset: NonNegativeInt = 0
    flags: NonNegativeInt = 0


def basic_auth(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def build_headers(host: str, username: str, password: str) -> Dict[str, str]:
    return {
        "Host": host,
        "Content-Type": JSON_CONTENT_TYPE,
        "User-Agent": USER_AGENT,
        "Authorization": basic_auth(username, password),
    }


def build_execute_body(query: str, session: bytes) -> bytes:
    # ASCII escapes keep lone surrogates representable.
    q = json.dumps(query).encode("ascii")
    return b'{"query":' + q + b',"session":' + session + b"}"


def member_source(text: str, key: str) -> Optional[str]:
    """
    Source text of the `key` member of the JSON object in `text`, the last
    one when the key repeats. `text` must already be known to be valid JSON.
    """
    found = None
    pos = _WHITESPACE.match(text).end() + 1
    while True:
        pos = _WHITESPACE.match(text, pos).end()
        if text[pos] == "}":
            return found
        if text[pos] == ",":
            pos = _WHITESPACE.match(text, pos + 1).end()
        name, pos = _decoder.raw_decode(text, pos)
        pos = _WHITESPACE.match(text, pos).end() + 1
        start = _WHITESPACE.match(text, pos).end()
        _, pos = _decoder.raw_decode(text, start)
        if name == key:
            found = text[start:pos]


@dataclass
class Envelope:
    """A parsed gateway response."""

    operation: str
    session: Optional[bytes] = None
    error: Optional[Dict[str, Any]] = None
    result: Optional[Dict[str, Any]] = None

    def raise_for_error(self) -> None:
        """Throw ApplicationError if the gateway reported an error object."""
        if self.error is None:
            return
        message = self.error.get("message")
        if not isinstance(message, str):
            raise ApplicationError(self.operation, UNKNOWN_ERROR)
        raise ApplicationError(self.operation, message)


def _object(value) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


def parse_response(body: bytes, operation: str) -> Envelope:
    """
    Parse a response body into an Envelope.
    Throw ProtocolError if the body is not a UTF-8 JSON object.
    """
    try:
        text = body.decode("utf-8")
        data = json.loads(text)
    except ValueError as e:
        raise ProtocolError(f"{operation}: invalid JSON in response: {e}") from e
    if not isinstance(data, dict):
        raise ProtocolError(f"{operation}: unexpected payload: {data!r}")

    session = None
    if _object(data.get("session")) is not None:
        session = member_source(text, "session").encode("utf-8")
    return Envelope(
        operation=operation,
        session=session,
        error=_object(data.get("error")),
        result=_object(data.get("result")),
    )


def read_fields(raw, operation: str) -> List[Field]:
    if not isinstance(raw, list):
        raise ProtocolError(f"{operation}: missing fields")
    try:
        return [Field.model_validate(f) for f in raw]
    except ValidationError as e:
        raise ProtocolError(f"{operation}: invalid field: {e}") from e


def read_rows(raw, width: int, operation: str) -> List[RowValues]:
    if not isinstance(raw, list):
        raise ProtocolError(f"{operation}: missing rows")

    rows = []
    for i, row in enumerate(raw):
        if not isinstance(row, dict):
            raise ProtocolError(f"{operation}: row {i} is not an object")
        lengths = row.get("lengths", [])
        if not isinstance(lengths, list):
            raise ProtocolError(f"{operation}: row {i} lengths is not an array")
        try:
            values = decode_row(row.get("values", ""), lengths)
        except ProtocolError as e:
            raise ProtocolError(f"{operation}: row {i}: {e}") from e
        if len(values) != width:
            raise ProtocolError(f"{operation}: row {i} has {len(values)} values for {width} fields")
        rows.append(values)
    return rows


def read_result(envelope: Envelope) -> Tuple[List[Field], List[RowValues]]:
    """
    Extract the fields and decoded rows of a successful Execute response.
    Call Envelope.raise_for_error() first: an error object wins over a result.
    """
    op = envelope.operation
    if envelope.result is None:
        raise ProtocolError(f"{op}: no result")
    fields = read_fields(envelope.result.get("fields"), op)
    rows = read_rows(envelope.result.get("rows"), len(fields), op)
    return fields, rows
