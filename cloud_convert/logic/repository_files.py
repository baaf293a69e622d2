"""Cloud storage file data access.

Typed repository over `cloud_storage_files` and `cloud_storage_user_files`.
Each query returns a fixed dataclass so callers never handle column-name
strings or raw rows.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from cloud_convert.db.base import get_engine
from cloud_convert.models.convert import ALLOWED_TRANSITIONS, ConvertRecord, ConvertStep, OwnedFile

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _coerce_step(value: object) -> ConvertStep:
    try:
        return ConvertStep(str(value))
    except ValueError:
        # The CHECK constraint keeps this unreachable on migrated schemas
        logger.error("convert_step_unrecognised value=%r", value)
        raise


class ConvertStepStore:
    """Read and advance the persisted convert step of cloud storage files."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine or get_engine()

    def find_owned_record(self, file_uuid: str, user_uuid: str) -> Optional[OwnedFile]:
        """Return the ownership link when `user_uuid` owns `file_uuid`.

        A missing file and a file owned by someone else both return None.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                sql_text(
                    """
                    SELECT id, file_uuid, user_uuid
                    FROM cloud_storage_user_files
                    WHERE file_uuid = :file_uuid AND user_uuid = :user_uuid
                    LIMIT 1
                    """
                ),
                {"file_uuid": file_uuid, "user_uuid": user_uuid},
            ).mappings().first()
        if row is None:
            return None
        return OwnedFile(id=int(row["id"]), file_uuid=str(row["file_uuid"]), user_uuid=str(row["user_uuid"]))

    def find_conversion_record(self, file_uuid: str) -> Optional[ConvertRecord]:
        with self.engine.connect() as conn:
            row = conn.execute(
                sql_text(
                    """
                    SELECT file_uuid, file_url, convert_step, task_uuid, region
                    FROM cloud_storage_files
                    WHERE file_uuid = :file_uuid
                    LIMIT 1
                    """
                ),
                {"file_uuid": file_uuid},
            ).mappings().first()
        if row is None:
            return None
        return ConvertRecord(
            file_uuid=str(row["file_uuid"]),
            file_url=str(row["file_url"] or ""),
            convert_step=_coerce_step(row["convert_step"]),
            task_uuid=row["task_uuid"] or None,
            region=row["region"] or None,
        )

    def advance_step(
        self,
        file_uuid: str,
        new_step: ConvertStep,
        expected: Optional[ConvertStep] = None,
    ) -> bool:
        """Write `new_step` for the file and return True when a row changed.

        Without `expected` the write is unconditional (last writer wins).
        With `expected` it only applies while the stored step still equals
        `expected`, so a concurrent writer that got there first is kept.
        """
        step = ConvertStep(new_step)
        params = {"file_uuid": file_uuid, "step": step.value, "updated_at": _now()}
        query = "UPDATE cloud_storage_files SET convert_step = :step, updated_at = :updated_at WHERE file_uuid = :file_uuid"
        if expected is not None:
            expected = ConvertStep(expected)
            if step not in ALLOWED_TRANSITIONS[expected]:
                raise ValueError(f"convert_step cannot move from {expected.value} to {step.value}")
            query += " AND convert_step = :expected"
            params["expected"] = expected.value
        with self.engine.begin() as conn:
            result = conn.execute(sql_text(query), params)
            changed = (result.rowcount or 0) > 0
        logger.info(
            "convert_step.advance file=%s step=%s expected=%s changed=%s",
            file_uuid,
            step.value,
            expected.value if expected is not None else None,
            changed,
        )
        return changed

    def mark_converting(
        self,
        file_uuid: str,
        task_uuid: str,
        region: str,
        task_token: Optional[str] = None,
    ) -> bool:
        """Record remote task coordinates and move the file from None to Converting."""
        if not task_uuid or not region:
            raise ValueError("task_uuid and region are required to start a conversion")
        with self.engine.begin() as conn:
            result = conn.execute(
                sql_text(
                    """
                    UPDATE cloud_storage_files
                    SET convert_step = :converting,
                        task_uuid = :task_uuid,
                        task_token = :task_token,
                        region = :region,
                        updated_at = :updated_at
                    WHERE file_uuid = :file_uuid AND convert_step = :none
                    """
                ),
                {
                    "converting": ConvertStep.CONVERTING.value,
                    "none": ConvertStep.NONE.value,
                    "task_uuid": task_uuid,
                    "task_token": task_token,
                    "region": region,
                    "updated_at": _now(),
                    "file_uuid": file_uuid,
                },
            )
            changed = (result.rowcount or 0) > 0
        logger.info("convert_step.start file=%s task=%s region=%s changed=%s", file_uuid, task_uuid, region, changed)
        return changed


__all__ = ["ConvertStepStore"]
