"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from stardash.config import ConfigError, StarDashConfig


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path / "run"))
    for var in ("STARDASH_ENDPOINT", "STARDASH_RETRY_DELAY", "STARDASH_HISTORY_SIZE"):
        monkeypatch.delenv(var, raising=False)


def test_defaults(tmp_path: Path):
    config = StarDashConfig.load()
    assert config.config_dir == tmp_path / "xdg" / "stardash"
    assert config.retry_delay == 2.0
    assert config.backoff == 1.0
    assert config.history_size == 100
    assert config.max_line_bytes is None
    assert config.retry_on_peer_close is False


def test_xdg_config_file_is_read(tmp_path: Path):
    config_dir = tmp_path / "xdg" / "stardash"
    config_dir.mkdir(parents=True)
    (config_dir / "config.yaml").write_text(
        "endpoint: /run/star.sock\nretry_delay: 0.5\nmax_line_bytes: 65536\n",
        encoding="utf-8",
    )
    config = StarDashConfig.load()
    assert config.endpoint == "/run/star.sock"
    assert config.retry_delay == 0.5
    assert config.max_line_bytes == 65536


def test_explicit_config_path(tmp_path: Path):
    path = tmp_path / "custom.yaml"
    path.write_text("history_size: 10\nretry_on_peer_close: true\n", encoding="utf-8")
    config = StarDashConfig.load(path)
    assert config.history_size == 10
    assert config.retry_on_peer_close is True


def test_empty_config_file(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert StarDashConfig.load(path).history_size == 100


def test_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    path = tmp_path / "c.yaml"
    path.write_text("retry_delay: 5\n", encoding="utf-8")
    monkeypatch.setenv("STARDASH_RETRY_DELAY", "0.25")
    monkeypatch.setenv("STARDASH_ENDPOINT", "/tmp/other.sock")
    monkeypatch.setenv("STARDASH_HISTORY_SIZE", "20")
    config = StarDashConfig.load(path)
    assert config.retry_delay == 0.25
    assert config.endpoint == "/tmp/other.sock"
    assert config.history_size == 20


def test_invalid_env_value(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STARDASH_RETRY_DELAY", "soon")
    with pytest.raises(ConfigError, match="STARDASH_RETRY_DELAY"):
        StarDashConfig.load()


def test_unknown_key_rejected(tmp_path: Path):
    path = tmp_path / "c.yaml"
    path.write_text("retry_dleay: 1\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="retry_dleay"):
        StarDashConfig.load(path)


def test_non_mapping_rejected(tmp_path: Path):
    path = tmp_path / "c.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        StarDashConfig.load(path)


def test_invalid_yaml_rejected(tmp_path: Path):
    path = tmp_path / "c.yaml"
    path.write_text("endpoint: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        StarDashConfig.load(path)


@pytest.mark.parametrize(
    "body",
    ["retry_delay: 0\n", "backoff: 0.5\n", "history_size: 0\n", "max_line_bytes: 0\n"],
)
def test_validation(tmp_path: Path, body: str):
    path = tmp_path / "c.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError):
        StarDashConfig.load(path)


def test_config_error_is_value_error():
    assert issubclass(ConfigError, ValueError)


@pytest.mark.parametrize(
    ("body", "key"),
    [
        ("retry_delay: fast\n", "retry_delay"),
        ('history_size: "10"\n', "history_size"),
        ("retry_on_peer_close: maybe\n", "retry_on_peer_close"),
        ("backoff: true\n", "backoff"),
        ("endpoint: 42\n", "endpoint"),
        ("max_line_bytes: 1.5\n", "max_line_bytes"),
    ],
)
def test_wrong_value_type_rejected(tmp_path: Path, body: str, key: str):
    path = tmp_path / "c.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError, match=key):
        StarDashConfig.load(path)


def test_int_accepted_for_float_setting(tmp_path: Path):
    path = tmp_path / "c.yaml"
    path.write_text("retry_delay: 3\nmax_line_bytes: null\n", encoding="utf-8")
    config = StarDashConfig.load(path)
    assert config.retry_delay == 3.0
    assert isinstance(config.retry_delay, float)
    assert config.max_line_bytes is None
