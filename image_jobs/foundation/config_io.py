from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_ENV_VAR = "IMAGE_JOBS_CONFIG"
_REPO_MARKERS = ("pyproject.toml", ".git")


def find_repo_root(start: str | os.PathLike[str] | None = None) -> str:
    """Nearest ancestor of `start` (default: cwd) holding a repo marker."""

    origin = Path(start or os.getcwd()).resolve()
    directory = origin.parent if origin.is_file() else origin
    for candidate in (directory, *directory.parents):
        if any((candidate / marker).exists() for marker in _REPO_MARKERS):
            return str(candidate)

    raise FileNotFoundError(
        f"Cannot locate repo root above {origin} (markers: {', '.join(_REPO_MARKERS)})"
    )


def _read_mapping(path: str | os.PathLike[str]) -> dict[str, Any]:
    text = Path(path).read_text(encoding="utf-8")
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(payload)


def _overlay(base: Mapping[str, Any], overlay: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    # Sections merge key by key; any other value (null included) replaces the base.
    merged = dict(base)
    for key, value in overlay.items():
        where = f"{prefix}.{key}" if prefix else str(key)
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _overlay(current, value, where)
        elif isinstance(current, Mapping) and value is not None:
            raise ValueError(
                f"Invalid config overlay merge at {where}: "
                f"base is mapping but overlay is {type(value).__name__}"
            )
        else:
            merged[key] = value
    return merged


def _explicit_config_path(config_path: str | os.PathLike[str] | None, env_var: str | None) -> str | None:
    if config_path is not None:
        raw = str(config_path).strip()
    elif env_var:
        raw = os.environ.get(env_var, "").strip()
    else:
        raw = ""
    if not raw:
        return None
    return os.path.abspath(os.path.expandvars(os.path.expanduser(raw)))


def load_config(
    *,
    config_path: str | os.PathLike[str] | None = None,
    env_var: str | None = DEFAULT_CONFIG_ENV_VAR,
    config_dir: str | os.PathLike[str] = "config",
    config_name: str = "config.yaml",
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Load the application config mapping.

    Resolution order:
      - `config_path`, else the file named by `env_var`: that single file, no overlay.
      - otherwise `<config_dir>/<config_name>` (relative dirs resolve against the
        repo root), deep-merged with `config.local.yaml` from the same directory.

    Returns (cfg, meta); meta records the mode and every file that was read.
    """

    explicit = _explicit_config_path(config_path, env_var)
    if explicit:
        meta = {
            "mode": "explicit" if config_path is not None else "env",
            "paths": [explicit],
            "env_var": env_var,
            "repo_root": None,
        }
        return _read_mapping(explicit), meta

    repo_root: str | None = None
    directory = Path(config_dir)
    if not directory.is_absolute():
        repo_root = find_repo_root(start_dir)
        directory = Path(repo_root) / directory

    base_path = directory / config_name
    if not base_path.is_file():
        raise FileNotFoundError(f"Missing base config file: {base_path}")

    cfg = _read_mapping(base_path)
    paths = [str(base_path.resolve())]
    mode = "base"

    overlay_path = directory / "config.local.yaml"
    if overlay_path.is_file():
        cfg = _overlay(cfg, _read_mapping(overlay_path))
        paths.append(str(overlay_path.resolve()))
        mode = "base+local"

    return cfg, {"mode": mode, "paths": paths, "env_var": env_var, "repo_root": repo_root}
