"""
Data structures shared by the protocol plugin framework.

ProbeOptions is the caller-supplied configuration handed to every plugin;
ProtocolResult is what a plugin run produces.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


DEFAULT_TIMEOUT = 10.0
DEFAULT_BANNER_LIMIT = 4096


class ProtocolTestStatus(Enum):
    """Test execution status."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    TLS_ERROR = "tls_error"
    CONFIG_ERROR = "config_error"
    FAILED = "failed"


@dataclass
class ProbeOptions:
    """Options applied uniformly to every plugin, whatever its protocol."""
    timeout: float = DEFAULT_TIMEOUT
    banner_limit: int = DEFAULT_BANNER_LIMIT

    def __post_init__(self):
        if not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ValueError(f"timeout must be a positive number, got {self.timeout!r}")
        if self.banner_limit <= 0:
            raise ValueError(f"banner_limit must be positive, got {self.banner_limit!r}")

    @classmethod
    def from_settings(cls, settings=None) -> "ProbeOptions":
        """Build options from ProbeSettings (environment/.env backed)."""
        if settings is None:
            from probe_agent.core.config import get_settings
            settings = get_settings()
        return cls(timeout=settings.timeout, banner_limit=settings.banner_limit)


@dataclass
class ProtocolResult:
    """
    Result of a protocol test execution.

    A failed probe is still a result: status tells which kind of failure it
    was and error_message says why.
    """
    protocol: str
    target: str
    port: Optional[int] = None
    status: ProtocolTestStatus = ProtocolTestStatus.SUCCESS
    duration_ms: float = 0.0
    timestamp: float = field(default_factory=time.time)
    error_message: Optional[str] = None
    metrics: Dict[str, Any] = field(default_factory=dict)
    raw_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == ProtocolTestStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            'protocol': self.protocol,
            'target': self.target,
            'port': self.port,
            'status': self.status.value,
            'duration_ms': self.duration_ms,
            'timestamp': self.timestamp,
            'error_message': self.error_message,
            'metrics': self.metrics,
            'raw_data': self.raw_data
        }
