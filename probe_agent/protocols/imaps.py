"""
IMAPS protocol plugin.

Opens a TLS connection and waits for the IMAP server greeting, which is the
point where an IMAP client considers the session established. Certificate
verification is strict unless the instruction line asks otherwise:

    mail.example.com must run imaps [with port 993] [with tls insecure]
"""

import ssl
from typing import Dict

from .base import ProtocolPlugin, PORT_PATTERN
from .connection import BannerValidator, create_ssl_context


TLS_STRICT = 'strict'
TLS_INSECURE = 'insecure'


class IMAPGreetingValidator(BannerValidator):
    """Accepts the untagged OK/PREAUTH greeting; a BYE greeting is a refusal."""

    GREETINGS = ('* OK', '* PREAUTH')

    def __init__(self, limit: int):
        super().__init__('* OK', description='an IMAP greeting', limit=limit)

    def matches(self, banner: str) -> bool:
        return banner.upper().startswith(self.GREETINGS)


class IMAPSPlugin(ProtocolPlugin):
    """IMAP over TLS; default port 993."""

    default_port = 993

    arguments = {
        'port': PORT_PATTERN,
        'tls': f'^({TLS_STRICT}|{TLS_INSECURE})$',
    }

    example = """
IMAPS Tester
------------
 The IMAPS tester connects to a remote host over TLS and ensures that the
 IMAP session handshake completes. Certificates are verified unless
 'with tls insecure' is given.

 This test is invoked via input like so:

    host.example.com must run imaps [with port 993] [with tls insecure]
"""

    def tls_mode(self, args: Dict[str, str]) -> str:
        return args.get('tls', TLS_STRICT).lower()

    def create_ssl_context(self, args: Dict[str, str]) -> ssl.SSLContext:
        return create_ssl_context(insecure=self.tls_mode(args) == TLS_INSECURE)

    def create_validator(self, args: Dict[str, str]) -> IMAPGreetingValidator:
        return IMAPGreetingValidator(limit=self.options.banner_limit)
