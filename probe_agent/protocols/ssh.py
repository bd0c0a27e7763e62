"""
SSH protocol plugin.

Reads the identification string an SSH server sends on connect and expects
it to come from OpenSSH:

    shell.example.com must run ssh [with port 22]
"""

from typing import Dict

from .base import ProtocolPlugin
from .connection import BannerValidator


class SSHPlugin(ProtocolPlugin):
    """OpenSSH banner check; plaintext, default port 22."""

    default_port = 22

    example = """
SSH Tester
----------
 The SSH tester connects to a remote host and ensures that the server
 identifies itself as OpenSSH.

 This test is invoked via input like so:

    host.example.com must run ssh [with port 22]
"""

    def create_validator(self, args: Dict[str, str]) -> BannerValidator:
        return BannerValidator('OpenSSH', description='OpenSSH',
                               limit=self.options.banner_limit)
