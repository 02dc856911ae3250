from __future__ import annotations

from pathlib import Path

from pitchdesk.config import get_settings
from pitchdesk.db.base import Base
from pitchdesk.db.session import engine
from pitchdesk.db import models  # noqa: F401


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [settings.data_dir]
    if settings.database_url.startswith("sqlite:///"):
        db_file = settings.database_url.removeprefix("sqlite:///")
        if db_file and db_file != ":memory:":
            paths.append(Path(db_file).parent)
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, list[str]]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)
    return {"tables": sorted(Base.metadata.tables)}
