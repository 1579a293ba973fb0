"""Decoder configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

ENV_PREFIX = "NATS_DISSECT_"


class ConfigError(ValueError):
    """Raised when a configuration value is out of range or unparsable."""


@dataclass
class DecoderConfig:
    # Longest command line buffered while waiting for its terminator.
    max_control_line: int = 64 * 1024
    # Largest declared payload accepted; anything bigger is a malformed command.
    max_payload: int = 64 * 1024 * 1024
    # Seconds without input after which ConnectionTable.expire_idle closes a decoder.
    idle_timeout: Optional[float] = None
    port: int = 4222

    def __post_init__(self) -> None:
        if self.max_control_line <= 0:
            raise ConfigError(f"max_control_line must be positive (got {self.max_control_line})")
        if self.max_payload < 0:
            raise ConfigError(f"max_payload must not be negative (got {self.max_payload})")
        if self.idle_timeout is not None and self.idle_timeout <= 0:
            raise ConfigError(f"idle_timeout must be positive (got {self.idle_timeout})")
        if not 0 < self.port < 65536:
            raise ConfigError(f"port out of range: {self.port}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "DecoderConfig":
        """Build a config from ``NATS_DISSECT_*`` variables, then apply ``overrides``.

        Overrides whose value is ``None`` are ignored so argparse results can be
        passed straight through.
        """
        env = os.environ if environ is None else environ
        values: dict = {}
        for item in fields(cls):
            raw = env.get(ENV_PREFIX + item.name.upper())
            if raw is None or not raw.strip():
                continue
            values[item.name] = _coerce(item.name, raw.strip(), float if item.name == "idle_timeout" else int)
        for name, value in overrides.items():
            if value is not None:
                values[name] = value
        return cls(**values)


def _coerce(name: str, raw: str, kind: type) -> Any:
    try:
        return kind(raw)
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name.upper()}: invalid value {raw!r}") from exc


__all__ = ["ConfigError", "DecoderConfig", "ENV_PREFIX"]
