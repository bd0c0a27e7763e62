"""Test fixtures: loopback listeners and a self-signed TLS server context."""

import asyncio
import contextlib
import ipaddress
import socket
import ssl
import threading
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID


class BannerServer:
    """
    Loopback TCP listener that sends a fixed payload, then hangs up.

    With hold_open the listener keeps its side open after the payload and
    sets client_closed once the client disconnects.
    """

    def __init__(self, payload: bytes, delay: float = 0.0, ssl_context=None,
                 hold_open: bool = False):
        self.payload = payload
        self.delay = delay
        self.ssl_context = ssl_context
        self.hold_open = hold_open
        self.connections = 0
        self.client_closed = asyncio.Event()
        self.host = '127.0.0.1'
        self.port = None
        self._server = None
        self._tasks = set()

    async def start(self):
        self._server = await asyncio.start_server(
            self._handle, self.host, 0, ssl=self.ssl_context
        )
        self.port = self._server.sockets[0].getsockname()[1]
        return self

    async def _handle(self, reader, writer):
        self.connections += 1
        self._tasks.add(asyncio.current_task())
        try:
            if self.delay and await self._wait_for_hangup(reader, self.delay):
                return
            writer.write(self.payload)
            await writer.drain()
            if self.hold_open:
                await self._wait_for_hangup(reader, None)
        except (ConnectionError, ssl.SSLError):
            self.client_closed.set()
        finally:
            writer.close()

    async def _wait_for_hangup(self, reader, timeout) -> bool:
        try:
            await asyncio.wait_for(reader.read(), timeout)
        except asyncio.TimeoutError:
            return False
        self.client_closed.set()
        return True

    async def stop(self):
        for task in self._tasks:
            task.cancel()
        self._server.close()
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._server.wait_closed(), timeout=5)


@pytest_asyncio.fixture
async def banner_server():
    """Factory fixture: ``await banner_server(b'220 ... SMTP\\r\\n')``."""
    servers = []

    async def _start(payload: bytes, delay: float = 0.0, ssl_context=None,
                     hold_open: bool = False):
        server = await BannerServer(payload, delay, ssl_context, hold_open).start()
        servers.append(server)
        return server

    yield _start

    for server in servers:
        await server.stop()


@pytest.fixture(scope="session")
def self_signed_cert(tmp_path_factory):
    """Write a self-signed certificate for 127.0.0.1 and return (cert, key) paths."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "probe-test")])
    now = datetime.now(timezone.utc)

    cert = x509.CertificateBuilder().subject_name(
        name
    ).issuer_name(
        name
    ).public_key(
        key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now - timedelta(minutes=5)
    ).not_valid_after(
        now + timedelta(days=1)
    ).add_extension(
        x509.SubjectAlternativeName([
            x509.DNSName("localhost"),
            x509.IPAddress(ipaddress.IPv4Address("127.0.0.1")),
        ]),
        critical=False,
    ).sign(key, hashes.SHA256())

    cert_dir = tmp_path_factory.mktemp("certs")
    cert_path = cert_dir / "server.crt"
    key_path = cert_dir / "server.key"
    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ))
    return cert_path, key_path


@pytest.fixture
def server_ssl_context(self_signed_cert):
    cert_path, key_path = self_signed_cert
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(str(cert_path), str(key_path))
    return context


@pytest.fixture
def stalled_tls_server(server_ssl_context):
    """TLS listener that completes the handshake, then neither reads nor writes."""
    listener = socket.create_server(('127.0.0.1', 0))
    listener.settimeout(10)
    release = threading.Event()

    def serve():
        try:
            conn, _ = listener.accept()
        except OSError:
            return
        try:
            tls_conn = server_ssl_context.wrap_socket(conn, server_side=True)
        except OSError:
            conn.close()
            return
        release.wait(10)
        tls_conn.close()

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()

    yield listener.getsockname()[1]

    release.set()
    listener.close()
    thread.join(timeout=5)
