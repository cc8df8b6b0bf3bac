from pathlib import Path

import pytest

from boundcmd.config import load_settings
from boundcmd.core.limits import ParserLimits, load_limits


def test_defaults_match_small_target():
    lim = ParserLimits()
    assert (
        lim.max_commands,
        lim.max_command_args,
        lim.max_command_name_length,
        lim.max_command_arg_size,
        lim.max_response_size,
    ) == (16, 4, 10, 32, 64)


def test_load_limits_from_explicit_path(tmp_path: Path):
    p = tmp_path / "limits.yaml"
    p.write_text("limits:\n  max_commands: 3\n  max_response_size: 128\n", encoding="utf-8")
    lim = load_limits(p)
    assert lim.max_commands == 3
    assert lim.max_response_size == 128
    assert lim.max_command_args == 4


def test_load_limits_bare_mapping(tmp_path: Path):
    p = tmp_path / "limits.yaml"
    p.write_text("max_command_arg_size: 8\n", encoding="utf-8")
    assert load_limits(p).max_command_arg_size == 8


def test_invalid_limits_raise_value_error(tmp_path: Path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("limits: {max_command_args: -1}\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_limits(bad)

    unknown = tmp_path / "unknown.yaml"
    unknown.write_text("limits: {max_widgets: 3}\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_limits(unknown)


def test_env_var_and_fallback(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BOUNDCMD_LIMITS", raising=False)
    assert load_limits() == ParserLimits()

    p = tmp_path / "env_limits.yaml"
    p.write_text("limits: {max_commands: 2}\n", encoding="utf-8")
    monkeypatch.setenv("BOUNDCMD_LIMITS", str(p))
    assert load_limits().max_commands == 2


def test_cwd_limits_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BOUNDCMD_LIMITS", raising=False)
    (tmp_path / "boundcmd.yaml").write_text("limits: {max_command_name_length: 20}\n", encoding="utf-8")
    assert load_limits().max_command_name_length == 20


def test_settings_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BOUNDCMD_HOST", "0.0.0.0")
    monkeypatch.setenv("BOUNDCMD_PORT", "9200")
    monkeypatch.setenv("BOUNDCMD_LOG_LEVEL", "debug")
    monkeypatch.setenv("BOUNDCMD_UNQUOTED_STRINGS", "yes")
    monkeypatch.setenv("BOUNDCMD_TRANSCRIPT_DIR", str(tmp_path / "t"))
    monkeypatch.delenv("BOUNDCMD_LIMITS", raising=False)
    s = load_settings()
    assert s.host == "0.0.0.0"
    assert s.port == 9200
    assert s.log_level == "DEBUG"
    assert s.unquoted_strings is True
    assert s.transcript_dir == tmp_path / "t"
    assert s.limits_path is None


def test_missing_limits_file_is_an_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BOUNDCMD_LIMITS", raising=False)
    with pytest.raises(FileNotFoundError):
        load_limits(tmp_path / "nope.yaml")

    monkeypatch.setenv("BOUNDCMD_LIMITS", str(tmp_path / "also_nope.yaml"))
    with pytest.raises(FileNotFoundError):
        load_limits()


def test_max_line_size_follows_limits():
    assert ParserLimits().max_line_size == 598
    assert ParserLimits(max_command_args=0).max_line_size == 10 + 64
