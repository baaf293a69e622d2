from __future__ import annotations

"""Functional test bootstrap for the convert service.

Each test gets its own file-backed SQLite database with migrations applied,
plus a scripted stand-in for the whiteboard status client so no test ever
reaches the network.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Tuple

import pytest
from sqlalchemy import create_engine, text as sql_text
from sqlalchemy.engine import Engine

from cloud_convert.config import AppConfig, DatabaseConfig, WhiteboardConfig
from cloud_convert.db.migrations_runner import apply_migrations
from cloud_convert.models.convert import ConversionTaskStatus, ConvertStep, RemoteConversionStatus, ResourceType


class ScriptedStatusClient:
    """Returns queued statuses in order, repeating the last one when exhausted."""

    def __init__(self, statuses: Iterable[object] = (RemoteConversionStatus.CONVERTING,)) -> None:
        self._statuses = list(statuses)
        self._lock = threading.Lock()
        self.calls: List[Tuple[str, str, ResourceType]] = []
        self.error: Optional[Exception] = None
        self.before_return: Optional[Callable[[], None]] = None

    def script(self, *statuses: object) -> "ScriptedStatusClient":
        self._statuses = list(statuses)
        return self

    def query_status(self, region: str, task_uuid: str, resource_type: ResourceType) -> ConversionTaskStatus:
        with self._lock:
            self.calls.append((region, task_uuid, resource_type))
            index = len(self.calls) - 1
        if self.error is not None:
            raise self.error
        if self.before_return is not None:
            self.before_return()
        raw = self._statuses[min(index, len(self._statuses) - 1)]
        return ConversionTaskStatus(status=RemoteConversionStatus.parse(getattr(raw, "value", raw)), raw={"status": raw})


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


@pytest.fixture
def engine(tmp_path) -> Engine:
    eng = create_engine(
        f"sqlite:///{tmp_path / 'convert.db'}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    apply_migrations(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def seed_file(engine: Engine) -> Callable[..., str]:
    """Insert a file row plus its ownership link and return the file uuid."""

    def _seed(
        *,
        user_uuid: str,
        file_uuid: Optional[str] = None,
        file_url: str = "https://storage.example.com/cloud-storage/lecture.pptx",
        step: ConvertStep = ConvertStep.CONVERTING,
        task_uuid: Optional[str] = "2fe0e1a0-7fd4-4b3c-9c1e-6a1b2c3d4e5f",
        region: Optional[str] = "cn-hz",
        owned: bool = True,
    ) -> str:
        fid = file_uuid or str(uuid.uuid4())
        with engine.begin() as conn:
            conn.execute(
                sql_text(
                    """
                    INSERT INTO cloud_storage_files
                        (file_uuid, file_name, file_url, convert_step, task_uuid, region, created_at, updated_at)
                    VALUES (:f, :name, :url, :step, :task, :region, :ts, :ts)
                    """
                ),
                {
                    "f": fid,
                    "name": file_url.rsplit("/", 1)[-1],
                    "url": file_url,
                    "step": ConvertStep(step).value,
                    "task": task_uuid,
                    "region": region,
                    "ts": _now(),
                },
            )
            if owned:
                conn.execute(
                    sql_text(
                        "INSERT INTO cloud_storage_user_files (user_uuid, file_uuid, created_at) VALUES (:u, :f, :ts)"
                    ),
                    {"u": user_uuid, "f": fid, "ts": _now()},
                )
        return fid

    return _seed


@pytest.fixture
def read_step(engine: Engine) -> Callable[[str], str]:
    def _read(file_uuid: str) -> str:
        with engine.connect() as conn:
            return conn.execute(
                sql_text("SELECT convert_step FROM cloud_storage_files WHERE file_uuid = :f"),
                {"f": file_uuid},
            ).scalar_one()

    return _read


@pytest.fixture
def status_client() -> ScriptedStatusClient:
    return ScriptedStatusClient()


@pytest.fixture
def owner() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def app_config(engine: Engine) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(dsn=str(engine.url), auto_apply_migrations=True),
        whiteboard=WhiteboardConfig(base_url="http://whiteboard.test", sdk_token="sdk-token"),
    )

