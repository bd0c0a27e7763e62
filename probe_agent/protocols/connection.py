"""
Connection primitives shared by every protocol plugin.

probe_connection() dials a target, optionally negotiates TLS, hands the open
stream to a ConnectionValidator and always closes the connection before
returning. The validator decides whether what the remote end did counts as
healthy, so new protocols only supply a predicate.
"""

import asyncio
import logging
import ssl
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from .exceptions import (
    ProbeConnectionError, ProbeTimeoutError, ProbeValidationError,
    TLSHandshakeError
)
from .models import DEFAULT_BANNER_LIMIT


logger = logging.getLogger(__name__)

# seconds a graceful close may take before the connection is aborted
CLOSE_TIMEOUT = 1.0


def format_address(host: str, port: int) -> str:
    """
    Format a dial address for host and port.

    Any host containing a colon is taken to be an IPv6 literal and bracketed.
    """
    if ':' in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def create_ssl_context(insecure: bool = False) -> ssl.SSLContext:
    """
    Create the client TLS context for a probe.

    Args:
        insecure: Skip hostname and certificate verification

    Returns:
        Configured SSL context
    """
    context = ssl.create_default_context()
    if insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


async def read_banner(reader: asyncio.StreamReader,
                      limit: int = DEFAULT_BANNER_LIMIT) -> str:
    """
    Read the first line the remote service sends.

    Returns the line including its terminator, or whatever arrived before the
    peer closed the connection.

    Raises:
        ProbeValidationError: If the line is longer than limit bytes
    """
    try:
        data = await reader.readuntil(b'\n')
    except asyncio.IncompleteReadError as e:
        data = e.partial
    except asyncio.LimitOverrunError:
        raise ProbeValidationError(f"Banner exceeds {limit} bytes")
    if len(data) > limit:
        raise ProbeValidationError(f"Banner exceeds {limit} bytes")
    return data.decode('utf-8', errors='replace')


class ConnectionValidator(ABC):
    """
    Predicate over an established connection.

    validate() raises ProbeValidationError when the service does not look right
    and returns a dict of observations (e.g. the banner) otherwise.
    """

    @abstractmethod
    async def validate(self, reader: asyncio.StreamReader,
                       writer: asyncio.StreamWriter) -> Dict[str, Any]:
        pass


class HandshakeValidator(ConnectionValidator):
    """Healthy as soon as the connection (and TLS handshake, if any) is up."""

    async def validate(self, reader, writer):
        return {}


class BannerValidator(ConnectionValidator):
    """Healthy when the first line contains the expected substring."""

    def __init__(self, substring: str, description: Optional[str] = None,
                 limit: int = DEFAULT_BANNER_LIMIT):
        self.substring = substring
        self.description = description or f"a banner containing {substring!r}"
        self.limit = limit

    def matches(self, banner: str) -> bool:
        return self.substring in banner

    async def validate(self, reader, writer):
        banner = await read_banner(reader, self.limit)
        if not banner:
            raise ProbeValidationError("Connection closed before a banner was received")
        if not self.matches(banner):
            raise ProbeValidationError(
                f"Banner doesn't look like {self.description}: {banner.strip()!r}"
            )
        return {'banner': banner.strip()}


async def _close(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await asyncio.wait_for(writer.wait_closed(), CLOSE_TIMEOUT)
    except asyncio.TimeoutError:
        writer.transport.abort()
    except (OSError, ssl.SSLError) as e:
        logger.debug("Error while closing connection: %s", e)


async def _dial_and_validate(host: str, port: int, validator: ConnectionValidator,
                             ssl_context: Optional[ssl.SSLContext]) -> Tuple[Dict[str, Any], float]:
    connect_start = time.time()
    try:
        reader, writer = await asyncio.open_connection(host, port, ssl=ssl_context)
    except ssl.SSLError as e:
        raise TLSHandshakeError(f"TLS handshake failed: {e}")
    except (UnicodeError, ValueError) as e:
        raise ProbeConnectionError(f"Invalid target address: {e}")
    except (TimeoutError, asyncio.TimeoutError) as e:
        raise ProbeTimeoutError(f"Connect timed out: {e}")
    except OSError as e:
        raise ProbeConnectionError(f"Connection failed: {e}")
    connect_time = (time.time() - connect_start) * 1000

    completed = False
    try:
        observed = await validator.validate(reader, writer)
        if ssl_context is not None:
            cipher = writer.get_extra_info('cipher')
            observed.setdefault('tls_version', cipher[1] if cipher else None)
            observed.setdefault('cipher', cipher[0] if cipher else None)
        completed = True
        return observed, connect_time
    except ssl.SSLError as e:
        raise TLSHandshakeError(f"TLS error: {e}")
    except OSError as e:
        raise ProbeConnectionError(f"Connection error: {e}")
    finally:
        # failures and cancellation abort; a graceful TLS close can block on the peer
        if completed:
            await _close(writer)
        else:
            writer.transport.abort()


async def probe_connection(host: str, port: int, timeout: float,
                           validator: ConnectionValidator,
                           ssl_context: Optional[ssl.SSLContext] = None) -> Dict[str, Any]:
    """
    Connect to host:port and apply a validator to the connection.

    The timeout bounds the whole exchange: connect, TLS handshake and
    validation together.

    Args:
        host: Hostname or IP literal (IPv6 without brackets)
        port: Target port number
        timeout: Seconds allowed for the whole probe
        validator: Predicate applied once the connection is established
        ssl_context: Wrap the connection in TLS when given

    Returns:
        Observations from the validator plus address and connect time

    Raises:
        ProbeTimeoutError, ProbeConnectionError, TLSHandshakeError,
        ProbeValidationError
    """
    address = format_address(host, port)
    logger.debug("Dialing %s (tls=%s, timeout=%ss)", address, ssl_context is not None, timeout)

    try:
        observed, connect_time = await asyncio.wait_for(
            _dial_and_validate(host, port, validator, ssl_context),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        raise ProbeTimeoutError(f"Timed out after {timeout}s talking to {address}")

    observed['address'] = address
    observed['connect_time_ms'] = round(connect_time, 2)
    return observed
