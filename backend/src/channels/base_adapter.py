"""
Base Adapter - Common functionality for HTTP-backed channel adapters

Provides the shared httpx client, error translation, latency measurement and
recipient hashing that every network adapter uses.
"""

import hashlib
import logging
import time
from abc import ABC
from typing import Any, Optional

import httpx

from config import settings
from .ports import AdapterError, ChannelAdapter


logger = logging.getLogger(__name__)


def hash_recipient(value: str) -> str:
    """Non-reversible recipient fingerprint for logs. First 12 chars of sha256."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]


class HttpChannelAdapter(ChannelAdapter, ABC):
    """
    Base class for adapters that talk to a network over HTTP.

    Provides common functionality:
    - One reusable httpx.Client (injectable for tests via httpx.MockTransport)
    - Translation of transport and HTTP errors into AdapterError
    - Timing/latency measurement
    - Safe logging (recipients hashed, bodies never logged)

    Subclasses implement send_message / send_media and, where the network
    supports them, send_template_message / send_interactive_message.
    """

    def __init__(self, client: Optional[httpx.Client] = None, timeout: Optional[float] = None):
        if client is None:
            client = httpx.Client(timeout=timeout or settings.ADAPTER_HTTP_TIMEOUT_SECONDS)
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client

    def _post(
        self,
        url: str,
        *,
        operation: str,
        to: str,
        json: Optional[dict[str, Any]] = None,
        data: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        auth: Optional[tuple[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        POST to the network and return the parsed JSON body.

        Args:
            url: Absolute endpoint URL
            operation: Operation name used in logs (e.g. 'send_message')
            to: Recipient, logged only as a hash

        Returns:
            Parsed JSON body, or an empty dict when the network returns none

        Raises:
            AdapterError: On transport failure or non-2xx response
        """
        with self.measure_latency(f"{self.channel_type.value}.{operation}", to):
            try:
                response = self._client.post(
                    url, json=json, data=data, headers=headers, auth=auth, params=params
                )
            except httpx.TimeoutException as e:
                raise AdapterError(
                    f"{self.channel_type.value} request timed out", retryable=True
                ) from e
            except httpx.RequestError as e:
                raise AdapterError(
                    f"{self.channel_type.value} request failed: {type(e).__name__}", retryable=True
                ) from e

            if response.status_code >= 400:
                raise self._error_from_response(response)

            if not response.content:
                return {}
            try:
                body = response.json()
            except ValueError:
                return {}
            return body if isinstance(body, dict) else {"result": body}

    def _error_from_response(self, response: httpx.Response) -> AdapterError:
        """
        Build the AdapterError for a non-2xx response.

        Subclasses override this to read network-specific error bodies and to
        raise MediaConversionError for transcoding failures.
        """
        detail = response.text[:500] if response.text else response.reason_phrase
        return AdapterError(
            f"{self.channel_type.value} API returned {response.status_code}: {detail}",
            status_code=response.status_code,
            retryable=response.status_code == 429 or response.status_code >= 500,
        )

    def measure_latency(self, operation_name: str, to: str = ""):
        """
        Context manager for measuring operation latency.

        Usage:
            with self.measure_latency("telegram.send_message", to):
                # perform request
                pass
        """
        class LatencyMeasurer:
            def __init__(self, name: str, to_hash: str):
                self.name = name
                self.to_hash = to_hash
                self.start_time = None
                self.latency_ms = 0

            def __enter__(self):
                self.start_time = time.time()
                return self

            def __exit__(self, exc_type, exc_val, exc_tb):
                self.latency_ms = int((time.time() - self.start_time) * 1000)
                if exc_type is None:
                    logger.info(
                        f"{self.name} completed in {self.latency_ms}ms",
                        extra={"to_hash": self.to_hash, "latency_ms": self.latency_ms},
                    )
                else:
                    logger.warning(
                        f"{self.name} failed after {self.latency_ms}ms: {exc_val}",
                        extra={"to_hash": self.to_hash, "latency_ms": self.latency_ms},
                    )
                return False

        return LatencyMeasurer(operation_name, hash_recipient(to) if to else "")

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
