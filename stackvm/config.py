import dataclasses
import os
from typing import Mapping, Optional

from .core.machine import DEFAULT_STACK_CAPACITY

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json")

ENV_PREFIX = "STACKVM_"


@dataclasses.dataclass
class VMConfig:
    """
    Runtime settings for a host running the machine.

    Values come from keyword arguments or, through from_env(), from
    STACKVM_* environment variables.
    """

    stack_capacity: int = DEFAULT_STACK_CAPACITY
    locals_size: int = 0
    max_steps: Optional[int] = None
    trace: bool = False
    log_level: str = "WARNING"
    log_format: str = "console"

    def __post_init__(self):
        if self.stack_capacity < 0:
            raise ValueError(f"stack_capacity must be non-negative, got {self.stack_capacity}")
        if self.locals_size < 0:
            raise ValueError(f"locals_size must be non-negative, got {self.locals_size}")
        if self.max_steps is not None and self.max_steps < 0:
            raise ValueError(f"max_steps must be non-negative, got {self.max_steps}")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
        self.log_format = self.log_format.lower()
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {self.log_format}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "VMConfig":
        """Build a config from STACKVM_* variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        kwargs = {}

        for field, parse in (
            ("stack_capacity", _parse_int),
            ("locals_size", _parse_int),
            ("max_steps", _parse_optional_int),
            ("trace", _parse_bool),
            ("log_level", str),
            ("log_format", str),
        ):
            name = ENV_PREFIX + field.upper()
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                continue
            try:
                kwargs[field] = parse(raw.strip())
            except ValueError as e:
                raise ValueError(f"Invalid value for {name}: {raw!r} ({e})") from e

        return cls(**kwargs)


def _parse_int(raw: str) -> int:
    return int(raw, 0)


def _parse_optional_int(raw: str) -> Optional[int]:
    if raw.lower() in ("none", "unlimited"):
        return None
    return int(raw, 0)


def _parse_bool(raw: str) -> bool:
    value = raw.lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError("expected a boolean")
