"""
SMTP protocol plugin.

Connects to the target and checks that the first line it sends looks like
an SMTP-server banner. Invoked by instruction lines such as:

    mail.example.com must run smtp [with port 25]
"""

from typing import Dict

from .base import ProtocolPlugin
from .connection import BannerValidator


class SMTPPlugin(ProtocolPlugin):
    """SMTP banner check; plaintext, default port 25."""

    default_port = 25

    example = """
SMTP Tester
-----------
 The SMTP tester connects to a remote host and ensures that a response
 is received that looks like an SMTP-server banner.

 This test is invoked via input like so:

    host.example.com must run smtp [with port 25]
"""

    def create_validator(self, args: Dict[str, str]) -> BannerValidator:
        return BannerValidator('SMTP', description='an SMTP server',
                               limit=self.options.banner_limit)
