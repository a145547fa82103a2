from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from image_jobs.foundation.config_io import find_repo_root
from image_jobs.foundation.logging_utils import parse_log_level

SUPPORTED_FORMATS: tuple[str, ...] = ("png", "jpeg", "jpg", "gif", "webp", "bmp")
_BOOL_WORDS: Mapping[str, bool] = {"true": True, "yes": True, "1": True, "false": False, "no": False, "0": False}


def parse_bool(value: Any, path: str) -> bool:
    """Booleans, 0/1 or true/false/yes/no strings; anything else is an error."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _BOOL_WORDS:
        return _BOOL_WORDS[value.strip().lower()]
    raise ValueError(f"Invalid boolean for {path}: {value!r}")


def parse_int(value: Any, path: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid config type for {path}: expected int, got bool")
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid config type for {path}: expected int (got {value!r})")
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Invalid config value for {path}: must be an int") from exc


_SCHEMA: Mapping[str, Mapping[str, None]] = {
    "datastore": {"root_path": None, "create": None},
    "encoding": {"default_format": None, "quality": None},
    "urls": {"path_prefix": None},
    "logging": {"level": None, "log_path": None},
}


@dataclass(frozen=True)
class AppConfig:
    datastore_root: str
    datastore_create: bool = False
    default_format: str = "png"
    quality: int = 85
    url_path_prefix: str = "/media"
    log_level: str = "INFO"
    log_path: str | None = None

    @staticmethod
    def from_dict(cfg: Mapping[str, Any]) -> tuple["AppConfig", list[str]]:
        """
        Parse and validate configuration, returning (AppConfig, warnings).

        Raises:
            ValueError: if required keys are missing or invalid, or if unknown
            keys are present while `strict: true`.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        warnings: list[str] = []
        strict_unknown_keys = parse_bool(cfg["strict"], "strict") if "strict" in cfg else False

        unknown_keys: list[str] = []
        for key, value in cfg.items():
            if key == "strict":
                continue
            if key not in _SCHEMA:
                unknown_keys.append(str(key))
                continue
            if value is None:
                continue
            if not isinstance(value, Mapping):
                raise ValueError(f"Invalid config type for {key}: expected mapping")
            unknown_keys.extend(f"{key}.{sub}" for sub in value if sub not in _SCHEMA[key])

        if unknown_keys:
            unknown_keys = sorted(set(unknown_keys))
            if strict_unknown_keys:
                raise ValueError("Unknown config keys: " + ", ".join(unknown_keys))
            warnings.extend(f"Unknown config key: {key}" for key in unknown_keys)

        def lookup(path: str) -> Any:
            section, key = path.split(".", 1)
            mapping = cfg.get(section)
            if not isinstance(mapping, Mapping):
                return None
            return mapping.get(key)

        def optional_str(path: str) -> str | None:
            value = lookup(path)
            if value is None:
                return None
            if not isinstance(value, str):
                raise ValueError(f"Invalid config type for {path}: expected string")
            return value.strip() or None

        def normalize_path(value: str) -> str:
            expanded = os.path.expandvars(os.path.expanduser(value))
            if not os.path.isabs(expanded):
                expanded = os.path.join(find_repo_root(), expanded)
            return os.path.abspath(expanded)

        root_raw = optional_str("datastore.root_path")
        if not root_raw:
            raise ValueError("Missing required config: datastore.root_path")

        create_raw = lookup("datastore.create")
        create = False if create_raw is None else parse_bool(create_raw, "datastore.create")

        default_format = (optional_str("encoding.default_format") or "png").lower()
        if default_format not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unknown encoding.default_format: {default_format} "
                f"(supported: {', '.join(SUPPORTED_FORMATS)})"
            )

        quality_raw = lookup("encoding.quality")
        quality = 85 if quality_raw is None else parse_int(quality_raw, "encoding.quality")
        if not 1 <= quality <= 100:
            raise ValueError(f"Invalid config value for encoding.quality: must be 1..100 (got {quality})")

        prefix = optional_str("urls.path_prefix") or "/media"
        if not prefix.startswith("/"):
            warnings.append(f"urls.path_prefix should start with '/'; using '/{prefix}'.")
            prefix = "/" + prefix
        prefix = prefix.rstrip("/") or "/"

        log_level = (optional_str("logging.level") or "INFO").upper()
        parse_log_level(log_level)

        log_path_raw = optional_str("logging.log_path")

        return (
            AppConfig(
                datastore_root=normalize_path(root_raw),
                datastore_create=create,
                default_format=default_format,
                quality=quality,
                url_path_prefix=prefix,
                log_level=log_level,
                log_path=normalize_path(log_path_raw) if log_path_raw else None,
            ),
            warnings,
        )
