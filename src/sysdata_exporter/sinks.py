"""
Delivery sinks for Sysdata Exporter.

A serialized snapshot goes to exactly one sink: standard output when the
destination is "-", otherwise a single HTTP POST.
"""

from __future__ import annotations

import logging
import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO
from urllib.parse import urlsplit

import requests

from sysdata_exporter.errors import OutputError, TransportError, ValidationError

if TYPE_CHECKING:
    from sysdata_exporter.config import Config

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


@dataclass
class DeliveryResult:
    """Response received for an HTTP delivery."""

    status_code: int
    status: str
    body: str
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def validate_url(url: str) -> str:
    """
    Check that url is a well-formed absolute http(s) URL.

    Returns:
        The URL unchanged.

    Raises:
        ValidationError: If the URL is relative, has no host, an unsupported
                         scheme, an invalid port, or characters that cannot
                         be sent in a request line.
    """
    # urlsplit silently drops tabs and newlines
    if any(ch.isspace() or not ch.isprintable() for ch in url):
        raise ValidationError(
            f"Invalid destination URL {url!r}: contains whitespace or control characters"
        )

    try:
        parts = urlsplit(url)
        # Accessing .port validates it
        parts.port
    except ValueError as e:
        raise ValidationError(f"Invalid destination URL {url!r}: {e}") from e

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise ValidationError(
            f"Invalid destination URL {url!r}: scheme must be one of {', '.join(ALLOWED_SCHEMES)}"
        )
    if not parts.hostname:
        raise ValidationError(f"Invalid destination URL {url!r}: missing host")

    # Same parsing requests applies when sending
    try:
        requests.Request("POST", url).prepare()
    except requests.exceptions.RequestException as e:
        raise ValidationError(f"Invalid destination URL {url!r}: {e}") from e

    return url


class Sink(ABC):
    """A destination for one serialized snapshot."""

    name: str = "base"

    @abstractmethod
    def deliver(self, document: str) -> DeliveryResult | None:
        """Deliver the document. Returns the HTTP response, if any."""


class StdoutSink(Sink):
    """Writes the document as one line to standard output."""

    name = "stdout"

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream

    def deliver(self, document: str) -> None:
        # Resolved at delivery time so redirected stdout is honoured
        stream = self.stream or sys.stdout
        try:
            stream.write(document + "\n")
            stream.flush()
        except OSError as e:
            raise OutputError(f"Could not write to standard output: {e}") from e


class HttpSink(Sink):
    """
    POSTs the document to an HTTP endpoint.

    One request, no retries. Any response completes the delivery; only
    transport failures are errors.
    """

    name = "http"

    def __init__(self, url: str, timeout: float | None = None):
        self.url = validate_url(url)
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "User-Agent": f"sysdata-exporter/{self._get_version()}",
                "Content-Type": "application/json",
            }
        )

    def deliver(self, document: str) -> DeliveryResult:
        """
        Send the document to the configured URL.

        Raises:
            TransportError: On connection, DNS, timeout or other request failures.
        """
        start_time = time.perf_counter()

        try:
            response = self.session.post(
                self.url,
                data=document.encode("utf-8"),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request to {self.url} timed out") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request error: {e}") from e
        finally:
            self.session.close()

        duration = (time.perf_counter() - start_time) * 1000
        result = DeliveryResult(
            status_code=response.status_code,
            status=f"{response.status_code} {response.reason or ''}".strip(),
            body=response.text,
            duration_ms=duration,
        )

        if result.ok:
            logger.info(f"Delivered snapshot to {self.url} in {duration:.0f}ms")
        else:
            logger.warning(f"Server answered {result.status} for {self.url}")

        return result

    def _get_version(self) -> str:
        from sysdata_exporter import __version__

        return __version__


def build_sink(config: Config) -> Sink:
    """
    Select the sink for the configured destination.

    Raises:
        ValidationError: If the destination is neither "-" nor a valid URL.
    """
    if config.to_stdout:
        return StdoutSink()
    return HttpSink(config.url, timeout=config.upload_timeout)
