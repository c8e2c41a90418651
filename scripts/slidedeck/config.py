"""Runtime settings read from the environment and optional `.env` files.

Environment:
  SLIDEDECK_INCLUDE_PDF_SLIDES  "true" starts in full mode (all document pages)
  SLIDEDECK_ALLOW_TOGGLE        enable the full/reduced toggle (defaults to the include flag)
  SLIDEDECK_ASSETS_DIR          directory holding local image assets
  SLIDEDECK_CATALOG             default catalog JSON path

`.env` files are only read, never written into ``os.environ``: their values
sit underneath the real environment, which always wins.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

ENV_INCLUDE_ALL = "SLIDEDECK_INCLUDE_PDF_SLIDES"
ENV_ALLOW_TOGGLE = "SLIDEDECK_ALLOW_TOGGLE"
ENV_ASSETS_DIR = "SLIDEDECK_ASSETS_DIR"
ENV_CATALOG = "SLIDEDECK_CATALOG"

_TRUE_VALUES = {"1", "true", "yes", "on"}

# KEY=VALUE with an optional "export " prefix.
_ENV_ASSIGNMENT = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")


@dataclass(frozen=True)
class Settings:
    include_all: bool = False
    allow_toggle: bool = False
    assets_dir: Optional[Path] = None
    catalog_path: Optional[Path] = None


def _env_value(raw: str) -> str:
    raw = raw.strip()
    if raw[:1] in {'"', "'"}:
        closing = raw.find(raw[0], 1)
        return raw[1:closing] if closing > 0 else raw[1:]
    # Unquoted values end at an inline comment.
    return raw.split("#", 1)[0].rstrip()


def parse_env_text(text: str) -> Dict[str, str]:
    """Parse `.env` text into a mapping; later assignments win."""
    values: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        match = _ENV_ASSIGNMENT.match(stripped)
        if match:
            values[match.group(1)] = _env_value(match.group(2))
    return values


def read_env_file(env_path: Path) -> Dict[str, str]:
    if not env_path.is_file():
        return {}
    return parse_env_text(env_path.read_text(encoding="utf-8"))


def env_overlay(
    env_file: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> Dict[str, str]:
    """Merge `./.env`, then ``env_file``, then the real environment on top."""
    merged = read_env_file((cwd or Path.cwd()) / ".env")
    if env_file:
        merged.update(read_env_file(Path(env_file).expanduser().resolve()))
    merged.update(os.environ if environ is None else environ)
    return merged


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


def _path(value: Optional[str]) -> Optional[Path]:
    value = (value or "").strip()
    return Path(value).expanduser() if value else None


def settings_from_env(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    include_all = _flag(env.get(ENV_INCLUDE_ALL))
    toggle_raw = env.get(ENV_ALLOW_TOGGLE)
    allow_toggle = include_all if toggle_raw is None or not toggle_raw.strip() else _flag(toggle_raw)
    return Settings(
        include_all=include_all,
        allow_toggle=allow_toggle,
        assets_dir=_path(env.get(ENV_ASSETS_DIR)),
        catalog_path=_path(env.get(ENV_CATALOG)),
    )


def load_settings(env_file: Optional[str] = None, *, environ: Optional[Mapping[str, str]] = None) -> Settings:
    return settings_from_env(env_overlay(env_file, environ=environ))
