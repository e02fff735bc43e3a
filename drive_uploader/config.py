"""Process configuration, read once from the environment at startup."""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, MutableMapping, Optional, Tuple

from .errors import ConfigError

REQUIRED_VARIABLES = (
    "CLIENT_ID",
    "CLIENT_SECRET",
    "REDIRECT_URI",
    "REFRESH_TOKEN",
    "ROOT_FOLDER_ID",
)


ENV_LINE = re.compile(
    r"^\s*(?:export\s+)?(?P<key>[A-Za-z_][A-Za-z0-9_]*)\s*=\s*(?P<value>.*?)\s*$"
)


def parse_env(content: str) -> Dict[str, str]:
    """
    Parse dotenv text into a mapping.

    Blank lines, ``#`` comments and lines that are not ``KEY=VALUE`` are
    ignored. One pair of matching surrounding quotes is removed from values.
    """
    values: Dict[str, str] = {}
    for line in content.splitlines():
        if line.lstrip().startswith("#"):
            continue
        match = ENV_LINE.match(line)
        if not match:
            continue
        value = match.group("value")
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[match.group("key")] = value
    return values


def load_env_file(
    path: Path,
    override: bool = False,
    environ: Optional[MutableMapping[str, str]] = None,
) -> List[str]:
    """
    Apply a ``.env`` file to the environment.

    Variables already set win unless ``override`` is true.

    Returns:
        Names of the variables that were set from the file
    """
    environ = os.environ if environ is None else environ
    if not path.is_file():
        raise ConfigError(f"env file not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"could not read env file {path}: {exc}") from exc

    applied = []
    for key, value in parse_env(content).items():
        if override or key not in environ:
            environ[key] = value
            applied.append(key)
    return applied


def resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _read_float(env: Mapping[str, str], name: str, default: float, errors: list) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        errors.append(f"{name}='{raw}' is not a number")
        return default
    if value <= 0:
        errors.append(f"{name} must be positive")
    return value


@dataclass(frozen=True)
class Settings:
    """Immutable process-wide settings."""
    client_id: str
    client_secret: str
    redirect_uri: str
    refresh_token: str
    root_folder_id: str
    folder_lookup_url: Optional[str] = None
    cors_origins: Tuple[str, ...] = ("*",)
    http_timeout: float = 60.0
    artifact_wait_timeout: float = 600.0
    artifact_poll_interval: float = 5.0
    port: int = 3000

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Every problem is collected and reported in one ConfigError so the
        operator can fix them in a single restart.
        """
        env = os.environ if env is None else env
        errors = []

        values = {}
        for name in REQUIRED_VARIABLES:
            value = (env.get(name) or "").strip()
            if not value:
                errors.append(f"{name} is not set")
            values[name] = value

        origins = tuple(
            o.strip() for o in (env.get("CORS_ORIGINS") or "*").split(",") if o.strip()
        ) or ("*",)

        http_timeout = _read_float(env, "HTTP_TIMEOUT", 60.0, errors)
        wait_timeout = _read_float(env, "ARTIFACT_WAIT_TIMEOUT", 600.0, errors)
        poll_interval = _read_float(env, "ARTIFACT_POLL_INTERVAL", 5.0, errors)

        raw_port = (env.get("PORT") or "3000").strip()
        try:
            port = int(raw_port)
        except ValueError:
            errors.append(f"PORT='{raw_port}' is not an integer")
            port = 3000

        if errors:
            raise ConfigError(
                "Startup configuration is invalid:\n" + "\n".join(f"  - {e}" for e in errors)
            )

        return cls(
            client_id=values["CLIENT_ID"],
            client_secret=values["CLIENT_SECRET"],
            redirect_uri=values["REDIRECT_URI"],
            refresh_token=values["REFRESH_TOKEN"],
            root_folder_id=values["ROOT_FOLDER_ID"],
            folder_lookup_url=(env.get("FOLDER_LOOKUP_URL") or "").strip() or None,
            cors_origins=origins,
            http_timeout=http_timeout,
            artifact_wait_timeout=wait_timeout,
            artifact_poll_interval=poll_interval,
            port=port,
        )
