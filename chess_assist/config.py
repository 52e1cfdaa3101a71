from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional


ENV_PREFIX = "CHESS_ASSIST_"


@dataclass
class SearchConfig:
    default_depth: int = 2
    max_depth: int = 5


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"


@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from e


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build a ``Config`` from ``CHESS_ASSIST_*`` environment variables.

    Unset variables keep their defaults. The default depth is clamped into
    ``1..max_depth``.

    Raises:
        ValueError: If a numeric variable is not an integer or ``max_depth``
            is below 1.
    """
    env = os.environ if environ is None else environ
    max_depth = _int_env(env, "MAX_DEPTH", SearchConfig.max_depth)
    if max_depth < 1:
        raise ValueError(f"{ENV_PREFIX}MAX_DEPTH must be >= 1")
    default_depth = _int_env(env, "DEFAULT_DEPTH", SearchConfig.default_depth)
    default_depth = max(1, min(default_depth, max_depth))

    return Config(
        search=SearchConfig(default_depth=default_depth, max_depth=max_depth),
        server=ServerConfig(
            host=env.get(ENV_PREFIX + "HOST", ServerConfig.host),
            port=_int_env(env, "PORT", ServerConfig.port),
            log_level=env.get(ENV_PREFIX + "LOG_LEVEL", ServerConfig.log_level).upper(),
        ),
    )
