"""
Global protocol registry instance and utility functions.

The registry is built once, on first use, by explicit registration of the
built-in plugins. After that it is only read.
"""

import threading
from typing import Any, Dict, List, Optional, Type

from .base import ProtocolPlugin, ProtocolRegistry
from .imaps import IMAPSPlugin
from .models import ProbeOptions, ProtocolResult
from .smtp import SMTPPlugin
from .ssh import SSHPlugin


BUILTIN_PLUGINS = (IMAPSPlugin, SMTPPlugin, SSHPlugin)

# Global registry instance
_registry = None
_registry_lock = threading.Lock()


def register_builtin_protocols(registry: ProtocolRegistry) -> None:
    """Register the plugins shipped with the agent."""
    for plugin_class in BUILTIN_PLUGINS:
        registry.register(plugin_class().name, plugin_class)


def get_protocol_registry() -> ProtocolRegistry:
    """
    Get the global protocol registry instance.

    Returns:
        The global ProtocolRegistry instance
    """
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                registry = ProtocolRegistry()
                register_builtin_protocols(registry)
                _registry = registry
    return _registry


def register_protocol(plugin_class: Type[ProtocolPlugin], name: Optional[str] = None) -> None:
    """
    Register a protocol plugin with the global registry.

    Args:
        plugin_class: The plugin class to register, used as its own factory
        name: Protocol name, defaults to the plugin's derived name
    """
    if not (isinstance(plugin_class, type) and issubclass(plugin_class, ProtocolPlugin)):
        raise ValueError(f"Plugin {plugin_class} must inherit from ProtocolPlugin")
    get_protocol_registry().register(name or plugin_class().name, plugin_class)


def get_protocol_plugin(protocol: str) -> ProtocolPlugin:
    """Get a new plugin instance for protocol."""
    return get_protocol_registry().get_plugin(protocol)


def list_supported_protocols() -> List[str]:
    return get_protocol_registry().list_protocols()


def is_protocol_supported(protocol: str) -> bool:
    return get_protocol_registry().is_supported(protocol)


def get_protocol_info(protocol: str) -> Dict[str, Any]:
    return get_protocol_registry().get_plugin_info(protocol)


async def execute_protocol_test(protocol: str, target: str, line: str = '',
                                options: Optional[ProbeOptions] = None) -> ProtocolResult:
    """
    Execute a protocol test with a fresh plugin instance.

    Args:
        protocol: Protocol name
        target: Host to test
        line: Instruction line carrying protocol arguments
        options: Shared options, defaults to ProbeOptions.from_settings()

    Returns:
        Test result

    Raises:
        UnknownProtocolError: If protocol is not registered
    """
    plugin = get_protocol_plugin(protocol)
    plugin.set_line(line)
    plugin.set_options(options or ProbeOptions.from_settings())
    return await plugin.run(target)
