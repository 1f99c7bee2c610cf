"""
HTTP transport for the expense API with auth and retry handling.

* The stored bearer token is attached to every request.
* A 401 clears the stored credentials and is never retried.
* Network failures (including a body cut off mid-stream) and 5xx
  responses are retried up to ``max_retries`` times, waiting
  ``backoff_base * 2**n`` seconds (1s, 2s, 4s by default) before retry
  ``n + 1``.

A retried POST is only safe when it carries an idempotency key; the client
generates one per submission and reuses it for every attempt.
"""

import time
from typing import Any, Callable, Dict, Optional

import requests

from client.credentials import Credentials
from core.config import settings
from core.exceptions import TransientFailure, Unauthenticated
from utils.logger import logger

RETRYABLE_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
)

def error_message(response: requests.Response, default: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            return ", ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
        if data.get("error"):
            return str(data["error"])
    return default

class ResilientTransport:
    def __init__(
        self,
        base_url: Optional[str] = None,
        credentials: Optional[Credentials] = None,
        max_retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.credentials = credentials if credentials is not None else Credentials()
        self.max_retries = settings.CLIENT_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_base = settings.CLIENT_BACKOFF_BASE if backoff_base is None else backoff_base
        self.timeout = timeout or settings.CLIENT_TIMEOUT
        self.session = session or requests.Session()
        self.sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (0-based)."""
        return self.backoff_base * (2 ** attempt)

    def _headers(self, extra: Optional[Dict[str, str]]) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.credentials.token:
            headers["Authorization"] = f"Bearer {self.credentials.token}"
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        """Send one logical request, retrying transient failures.

        Returns the first non-5xx, non-401 response (callers inspect 4xx
        themselves). Raises Unauthenticated on 401 and TransientFailure once
        retries are exhausted.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        attempt = 0
        while True:
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=self._headers(headers),
                    timeout=self.timeout,
                )
            except RETRYABLE_ERRORS as e:
                response = None
                failure = f"Network error: {e}"
            else:
                if response.status_code == 401:
                    self.credentials.clear()
                    raise Unauthenticated(error_message(response, "Session expired. Please log in again."))
                if response.status_code < 500:
                    return response
                failure = f"Server error {response.status_code}"

            if attempt >= self.max_retries:
                logger.error(f"{method} {url} failed after {attempt + 1} attempts: {failure}")
                raise TransientFailure(
                    "Network error. Please check your connection and try again."
                    if response is None
                    else error_message(response, "Server error. Please try again later."),
                    attempts=attempt + 1,
                    status_code=response.status_code if response is not None else None,
                )

            delay = self.backoff_delay(attempt)
            logger.warning(f"{method} {url} attempt {attempt + 1} failed ({failure}); retrying in {delay:g}s")
            self.sleep(delay)
            attempt += 1
