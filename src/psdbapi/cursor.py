from typing import TYPE_CHECKING, Any, Iterator, List, MutableSequence, Optional, Sequence, Tuple

from .exceptions import InterfaceError, NotSupportedError, ProgrammingError
from .protocol import Field
from .rows import RowValues

if TYPE_CHECKING:
    from .connection import Connection


class ResultSet:
    """
    Forward-only cursor over one decoded result.

    Row values are memoryviews into each row's decoded buffer; they stay
    valid for as long as they (or this ResultSet) are referenced.
    """

    def __init__(self, fields: Sequence[Field], rows: Sequence[RowValues]):
        self.fields: Tuple[Field, ...] = tuple(fields)
        self.rows: Tuple[RowValues, ...] = tuple(rows)
        self._pos = 0

    def columns(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def rownumber(self) -> int:
        return self._pos

    def next(self, dest: MutableSequence[Any]) -> bool:
        """
        Copy the current row's values into `dest` and advance.
        Returns False once every row has been consumed, and on every call after.
        """
        if len(dest) != len(self.fields):
            raise ProgrammingError(f"destination holds {len(dest)} values, result has {len(self.fields)} columns")
        if self._pos >= len(self.rows):
            return False

        row = self.rows[self._pos]
        for i, value in enumerate(row):
            dest[i] = value
        self._pos += 1
        return True

    def __iter__(self) -> Iterator[RowValues]:
        return self

    def __next__(self) -> RowValues:
        if self._pos >= len(self.rows):
            raise StopIteration
        row = self.rows[self._pos]
        self._pos += 1
        return row

    def __len__(self) -> int:
        return len(self.rows)

    def close(self) -> None:
        # Nothing is held beyond process memory.
        pass


class Cursor:
    def __init__(self, conn: "Connection"):
        self._conn = conn
        self._result: Optional[ResultSet] = None
        self._closed = False
        self.description: Optional[List[Tuple]] = None
        self.rowcount: int = -1
        self.arraysize: int = 1

    @property
    def connection(self) -> "Connection":
        return self._conn

    def _check_open(self) -> None:
        if self._closed:
            raise InterfaceError("cursor is closed")

    def execute(self, operation: str, parameters: Any = None, timeout: Optional[float] = None) -> "Cursor":
        """
        Run `operation` on the gateway and hold its result for fetching.
        Raises:
          NotSupportedError for any parameters (no prepared statements),
          ApplicationError  when the gateway reports an error,
          OperationalError  for non-2xx responses, network failures or a passed deadline,
          ProtocolError     for responses that break the wire protocol.
        """
        self._check_open()
        if parameters is not None:
            raise NotSupportedError("query parameters are not supported")

        self._result = None
        self.description = None
        self.rowcount = -1

        result = self._conn.query(operation, timeout=timeout)
        self._result = result
        self.description = [
            (f.name, f.type, None, f.column_length, None, None, None) for f in result.fields
        ]
        self.rowcount = len(result)
        return self

    def executemany(self, operation: str, seq_of_parameters: Any) -> None:
        raise NotSupportedError("executemany method not implemented")

    def fetchone(self) -> Optional[Tuple[bytes, ...]]:
        self._check_open()
        if self._result is None:
            raise ProgrammingError("no results: execute() was not called")
        try:
            row = next(self._result)
        except StopIteration:
            return None
        return tuple(bytes(v) for v in row)

    def fetchmany(self, size: Optional[int] = None) -> List[Tuple[bytes, ...]]:
        if size is None:
            size = self.arraysize
        rows = []
        for _ in range(size):
            r = self.fetchone()
            if r is None:
                break
            rows.append(r)
        return rows

    def fetchall(self) -> List[Tuple[bytes, ...]]:
        rows = []
        while True:
            r = self.fetchone()
            if r is None:
                return rows
            rows.append(r)

    def setinputsizes(self, sizes: Any) -> None:
        pass

    def setoutputsize(self, size: Any, column: Optional[int] = None) -> None:
        pass

    def __iter__(self):
        return self

    def __next__(self) -> Tuple[bytes, ...]:
        row = self.fetchone()
        if row is None:
            raise StopIteration
        return row

    def close(self) -> None:
        if self._result is not None:
            self._result.close()
        self._result = None
        self._closed = True
