import base64
import json
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class SentRequest:
    url: str
    headers: Dict[str, str]
    body: bytes
    backend: str
    timeout: Optional[float]

    def json(self):
        return json.loads(self.body)


class FakeClock:
    """Stands in for the time module; only monotonic() is used."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def monotonic(self) -> float:
        return self.now


@dataclass
class RecordingTransport:
    """Transport double: replays canned responses and records what was sent."""

    responses: list = field(default_factory=list)
    requests: list = field(default_factory=list)
    closed: bool = False
    clock: Optional[FakeClock] = None
    latency: float = 0.0

    def send(self, url, headers, body, backend="", timeout=None):
        self.requests.append(SentRequest(url, dict(headers), body, backend, timeout))
        if self.clock is not None:
            self.clock.now += self.latency
        if not self.responses:
            raise AssertionError(f"unexpected request to {url}")
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        status, payload = resp if isinstance(resp, tuple) else (200, resp)
        if not isinstance(payload, bytes):
            payload = json.dumps(payload, separators=(",", ":")).encode()
        return status, payload

    def close(self):
        self.closed = True

    def endpoints(self):
        return [r.url.rsplit("/", 1)[1] for r in self.requests]


def encode_row(*values: bytes) -> dict:
    return {
        "lengths": [str(len(v)) for v in values],
        "values": base64.b64encode(b"".join(values)).decode(),
    }


def field_json(name: str, type_: str = "VARCHAR", **extra) -> dict:
    return {"name": name, "type": type_, "table": "t", **extra}


def result_json(fields, rows, session=None) -> dict:
    resp = {"result": {"fields": fields, "rows": rows}}
    if session is not None:
        resp["session"] = session
    return resp
