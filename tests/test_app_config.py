import os

import pytest

from image_jobs.framework.config import AppConfig, parse_bool, parse_int


def _base_cfg_dict(tmp_path) -> dict:
    return {
        "datastore": {"root_path": str(tmp_path / "media"), "create": True},
        "encoding": {"default_format": "png", "quality": 90},
        "urls": {"path_prefix": "/media"},
        "logging": {"level": "debug", "log_path": str(tmp_path / "logs")},
    }


def test_from_dict_parses_every_section(tmp_path):
    cfg, warnings = AppConfig.from_dict(_base_cfg_dict(tmp_path))

    assert warnings == []
    assert cfg.datastore_root == os.path.abspath(str(tmp_path / "media"))
    assert cfg.datastore_create is True
    assert cfg.default_format == "png"
    assert cfg.quality == 90
    assert cfg.url_path_prefix == "/media"
    assert cfg.log_level == "DEBUG"
    assert cfg.log_path == os.path.abspath(str(tmp_path / "logs"))


def test_defaults_apply_when_sections_are_missing(tmp_path):
    cfg, warnings = AppConfig.from_dict({"datastore": {"root_path": str(tmp_path)}})

    assert warnings == []
    assert cfg.datastore_create is False
    assert cfg.default_format == "png"
    assert cfg.quality == 85
    assert cfg.url_path_prefix == "/media"
    assert cfg.log_level == "INFO"
    assert cfg.log_path is None


def test_missing_datastore_root_raises():
    with pytest.raises(ValueError, match="Missing required config: datastore.root_path"):
        AppConfig.from_dict({"datastore": {"create": True}})


def test_unknown_config_keys_warn_by_default(tmp_path):
    cfg_dict = _base_cfg_dict(tmp_path)
    cfg_dict["datastore"]["unknown_datastore_key"] = 1
    cfg_dict["extras"] = {"x": 1}

    _cfg, warnings = AppConfig.from_dict(cfg_dict)

    assert "Unknown config key: datastore.unknown_datastore_key" in warnings
    assert "Unknown config key: extras" in warnings


def test_unknown_config_keys_strict_mode_raises(tmp_path):
    cfg_dict = _base_cfg_dict(tmp_path)
    cfg_dict["strict"] = True
    cfg_dict["encoding"]["unknown_encoding_key"] = 1

    with pytest.raises(ValueError, match=r"Unknown config keys: encoding\.unknown_encoding_key"):
        AppConfig.from_dict(cfg_dict)


def test_relative_prefix_is_normalized_with_warning(tmp_path):
    cfg_dict = _base_cfg_dict(tmp_path)
    cfg_dict["urls"]["path_prefix"] = "images/"

    cfg, warnings = AppConfig.from_dict(cfg_dict)

    assert cfg.url_path_prefix == "/images"
    assert any("urls.path_prefix" in w for w in warnings)


@pytest.mark.parametrize(
    "section,key,value,match",
    [
        ("encoding", "default_format", "tiff", "Unknown encoding.default_format: tiff"),
        ("encoding", "quality", 0, "must be 1..100"),
        ("encoding", "quality", True, "expected int, got bool"),
        ("datastore", "create", "maybe", "Invalid boolean for datastore.create"),
        ("logging", "level", "chatty", "Invalid log level"),
        ("urls", "path_prefix", 5, "expected string"),
    ],
)
def test_invalid_values_raise(tmp_path, section, key, value, match):
    cfg_dict = _base_cfg_dict(tmp_path)
    cfg_dict[section][key] = value

    with pytest.raises(ValueError, match=match):
        AppConfig.from_dict(cfg_dict)


def test_non_mapping_section_raises(tmp_path):
    cfg_dict = _base_cfg_dict(tmp_path)
    cfg_dict["encoding"] = "png"

    with pytest.raises(ValueError, match="Invalid config type for encoding: expected mapping"):
        AppConfig.from_dict(cfg_dict)


def test_parse_bool_and_int_are_strict():
    assert parse_bool(" Yes ", "x") is True
    assert parse_bool(0, "x") is False
    with pytest.raises(ValueError):
        parse_bool(2, "x")
    with pytest.raises(ValueError):
        parse_bool("false-ish", "x")

    assert parse_int(" 42 ", "x") == 42
    with pytest.raises(ValueError, match="must be an int"):
        parse_int("4.2", "x")
    with pytest.raises(ValueError):
        parse_int(None, "x")
