"""
Configuration management for barrier participants

Provides environment-based configuration with sensible defaults.
"""

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from .net.address import DEFAULT_LOOKUP_URL


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value == '':
        return None
    return float(value)


def _flag(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes')


# field name -> (environment variable, parser)
ENV_OVERRIDES = {
    'redis_url': ('REDIS_URL', str),
    'key_prefix': ('BARRIER_KEY_PREFIX', str),
    'session_ttl': ('BARRIER_SESSION_TTL', float),
    'barrier_path': ('BARRIER_PATH', str),
    'participant_count': ('BARRIER_PARTICIPANT_COUNT', int),
    'participant_value': ('BARRIER_PARTICIPANT_VALUE', _optional_float),
    'exit_delay': ('BARRIER_EXIT_DELAY', float),
    'idle_timeout': ('BARRIER_IDLE_TIMEOUT', float),
    'repository': ('GITHUB_REPOSITORY', str),
    'address_lookup_url': ('BARRIER_ADDRESS_LOOKUP_URL', str),
    'github_annotations': ('GITHUB_ACTIONS', _flag),
    'log_level': ('LOG_LEVEL', str),
}


@dataclass
class BarrierConfig:
    """Configuration for one barrier participant"""

    # Coordination service
    redis_url: str = "redis://localhost:6379"
    key_prefix: str = "quorum_barrier"
    session_ttl: float = 10.0

    # Barrier
    barrier_path: str = "/barrier"
    participant_count: int = 50
    participant_value: Optional[float] = None
    exit_delay: float = 2.0
    idle_timeout: float = 120.0

    # Participant metadata
    repository: Optional[str] = None
    address_lookup_url: str = DEFAULT_LOOKUP_URL

    # Output
    github_annotations: bool = False
    log_level: str = "INFO"
    verbose: bool = False
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def __post_init__(self):
        """
        Load configuration from environment variables.

        Only fields still holding their default are taken from the
        environment, so explicit constructor arguments win.
        """
        for f in fields(self):
            if f.name not in ENV_OVERRIDES or getattr(self, f.name) != f.default:
                continue
            env_name, parse = ENV_OVERRIDES[f.name]
            value = os.getenv(env_name)
            if value is not None:
                setattr(self, f.name, parse(value))

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            'redis_url': self.redis_url,
            'key_prefix': self.key_prefix,
            'session_ttl': self.session_ttl,
            'barrier_path': self.barrier_path,
            'participant_count': self.participant_count,
            'participant_value': self.participant_value,
            'exit_delay': self.exit_delay,
            'idle_timeout': self.idle_timeout,
            'repository': self.repository,
            'address_lookup_url': self.address_lookup_url,
            'github_annotations': self.github_annotations,
            'log_level': self.log_level,
            'verbose': self.verbose,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BarrierConfig':
        """Create configuration from dictionary"""
        return cls(**data)

    def validate(self) -> bool:
        """Validate configuration"""
        if not self.redis_url:
            raise ValueError("redis_url is required")

        if not self.barrier_path.strip('/'):
            raise ValueError("barrier_path must not be empty")

        if self.participant_count <= 0:
            raise ValueError("participant_count must be positive")

        if self.idle_timeout <= 0:
            raise ValueError("idle_timeout must be positive")

        if self.session_ttl <= 0:
            raise ValueError("session_ttl must be positive")

        if self.exit_delay < 0:
            raise ValueError("exit_delay must be non-negative")

        return True


def setup_logging(config: BarrierConfig):
    """Setup logging based on configuration"""
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format=config.log_format
    )

    # Keep HTTP client chatter out of barrier progress output
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)

    # --verbose shows barrier debug output without debugging every library
    if config.verbose or config.log_level.upper() == 'DEBUG':
        logging.getLogger('quorum_barrier').setLevel(logging.DEBUG)
