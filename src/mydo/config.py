from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "MYDO"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv() -> None:
    import importlib
    import importlib.util

    if importlib.util.find_spec("dotenv") is None:
        return
    dotenv = importlib.import_module("dotenv")
    dotenv.load_dotenv(override=False)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass
class Settings:
    data_dir: Path
    log_level: str
    work_minutes: int
    break_minutes: int

    @property
    def log_file(self) -> Path:
        return self.data_dir / "mydo.log"


def get_settings() -> Settings:
    _load_dotenv()
    return Settings(
        data_dir=_env_path(_k("DATA_DIR"), Path("./mydo_data")),
        log_level=os.getenv(_k("LOG_LEVEL"), "WARNING").strip().upper() or "WARNING",
        work_minutes=max(1, _env_int(_k("WORK_MINUTES"), 25)),
        break_minutes=max(1, _env_int(_k("BREAK_MINUTES"), 5)),
    )
