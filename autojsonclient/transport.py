"""
Transports used by generated stubs to reach the server.
"""

import abc
import asyncio
import logging
from typing import Any

import requests

from .errors import TransportError

DEFAULT_HEADERS = {"Content-Type": "application/json", "Cache-Control": "no-cache"}


class Transport(abc.ABC):
    """Performs the HTTP exchanges needed by a generated client and parses the JSON bodies."""

    @abc.abstractmethod
    async def get_json(self, url: str) -> Any:
        """Fetch `url` and return its parsed JSON body."""

    @abc.abstractmethod
    async def post_json(self, url: str, body: str) -> Any:
        """POST the serialized request `body` to `url` and return the parsed JSON response."""


class HttpTransport(Transport):

    def __init__(
        self,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        session: requests.Session | None = None,
    ):
        """Transport based on `requests`. Blocking calls run in a worker thread so that
        several calls can be outstanding at once.
        Args:
            timeout (float): seconds to wait for the server
            headers (dict): extra headers sent with every request
            session (requests.Session): session to reuse connections and cookies from
        """
        self.timeout = timeout
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self.session = session or requests.Session()

    def _request(self, method: str, url: str, body: str | None) -> Any:
        try:
            response = self.session.request(
                method, url, data=body, headers=self.headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{method} {url} returned a non-JSON response (HTTP {response.status_code})"
            ) from e

    async def get_json(self, url: str) -> Any:
        logging.debug("GET %s", url)
        return await asyncio.to_thread(self._request, "GET", url, None)

    async def post_json(self, url: str, body: str) -> Any:
        logging.debug("POST %s %s", url, body)
        return await asyncio.to_thread(self._request, "POST", url, body)
