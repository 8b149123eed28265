from pathlib import Path

from mydo.config import get_settings


def test_defaults(monkeypatch):
    for name in ("MYDO_DATA_DIR", "MYDO_LOG_LEVEL", "MYDO_WORK_MINUTES", "MYDO_BREAK_MINUTES"):
        monkeypatch.delenv(name, raising=False)
    settings = get_settings()
    assert settings.data_dir == Path("./mydo_data")
    assert settings.log_level == "WARNING"
    assert (settings.work_minutes, settings.break_minutes) == (25, 5)


def test_environment_overrides(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("MYDO_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("MYDO_LOG_LEVEL", "debug")
    monkeypatch.setenv("MYDO_WORK_MINUTES", "50")
    monkeypatch.setenv("MYDO_BREAK_MINUTES", "ten")
    settings = get_settings()
    assert settings.data_dir == tmp_path
    assert settings.log_level == "DEBUG"
    assert settings.work_minutes == 50
    assert settings.break_minutes == 5
    assert settings.log_file == tmp_path / "mydo.log"
