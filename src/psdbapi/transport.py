"""HTTP transport: sends one fully formed request and returns status and body."""

import logging
from typing import Dict, Optional, Tuple

import requests

from .exceptions import QueryCancelled, TransportError

logger = logging.getLogger(__name__)


class HTTPTransport:
    """
    POSTs request bodies with a pooled requests.Session.

    `backend` names where the request is sent: an empty backend goes straight
    to the URL's host, anything else is the proxy origin (e.g.
    "http://edge-proxy:3128") the request is routed through.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self._session = session or requests.Session()

    def send(
        self,
        url: str,
        headers: Dict[str, str],
        body: bytes,
        backend: str = "",
        timeout: Optional[float] = None,
    ) -> Tuple[int, bytes]:
        proxies = {"http": backend, "https": backend} if backend else None
        try:
            resp = self._session.post(
                url,
                data=body,
                headers=headers,
                proxies=proxies,
                timeout=timeout,
            )
        except requests.Timeout as e:
            raise QueryCancelled(f"request to {url} exceeded its deadline of {timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(f"network error during request to {url}: {e}") from e

        logger.debug("POST %s -> %s (%d bytes)", url, resp.status_code, len(resp.content))
        return resp.status_code, resp.content

    def close(self) -> None:
        self._session.close()
