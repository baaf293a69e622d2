"""Functional tests for convert-finish reconciliation.

Drive `ConversionReconciler` against a real SQLite-backed store and a
scripted status client, covering the end-to-end lifecycle scenarios, the
terminal-step guards and the concurrent-caller behaviour.
"""

from __future__ import annotations

import threading
import uuid

import pytest

from cloud_convert.logic.errors import (
    AlreadyConverted,
    ConversionFailed,
    ConversionInProgress,
    ConversionNotStarted,
    ConversionWaiting,
    ConvertError,
    RecordNotFound,
    RemoteQueryError,
)
from cloud_convert.logic.reconciler import ConversionReconciler
from cloud_convert.logic.repository_files import ConvertStepStore
from cloud_convert.models.convert import ConvertStep, RemoteConversionStatus, ResourceType


@pytest.fixture
def store(engine) -> ConvertStepStore:
    return ConvertStepStore(engine)


@pytest.fixture
def reconciler(store, status_client) -> ConversionReconciler:
    return ConversionReconciler(store, status_client)


def test_new_file_finished_becomes_done(reconciler, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner, step=ConvertStep.NONE)
    status_client.script(RemoteConversionStatus.FINISHED)

    assert reconciler.finish_conversion(fid, owner) == {}
    assert read_step(fid) == "Done"


def test_waiting_leaves_step_unchanged(reconciler, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner)
    status_client.script(RemoteConversionStatus.WAITING)

    with pytest.raises(ConversionWaiting):
        reconciler.finish_conversion(fid, owner)
    assert read_step(fid) == "Converting"


def test_fail_becomes_failed(reconciler, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner)
    status_client.script(RemoteConversionStatus.FAIL)

    with pytest.raises(ConversionFailed):
        reconciler.finish_conversion(fid, owner)
    assert read_step(fid) == "Failed"


@pytest.mark.parametrize("remote", list(RemoteConversionStatus) + ["Pending", "", None, 7])
def test_done_short_circuits_without_remote_query(reconciler, status_client, seed_file, owner, remote):
    fid = seed_file(user_uuid=owner, step=ConvertStep.DONE)
    status_client.script(remote)

    with pytest.raises(AlreadyConverted):
        reconciler.finish_conversion(fid, owner)
    assert status_client.calls == []


def test_unknown_file_is_not_found(reconciler, status_client, owner):
    with pytest.raises(RecordNotFound):
        reconciler.finish_conversion(str(uuid.uuid4()), owner)
    assert status_client.calls == []


def test_repeated_calls_after_done_never_requery(reconciler, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner)
    status_client.script(RemoteConversionStatus.FINISHED)
    reconciler.finish_conversion(fid, owner)
    assert len(status_client.calls) == 1

    for _ in range(3):
        with pytest.raises(AlreadyConverted):
            reconciler.finish_conversion(fid, owner)
    assert len(status_client.calls) == 1
    assert read_step(fid) == "Done"


def test_failed_is_sticky(reconciler, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner, step=ConvertStep.FAILED)
    status_client.script(RemoteConversionStatus.FINISHED)

    for _ in range(3):
        with pytest.raises(ConversionFailed):
            reconciler.finish_conversion(fid, owner)
    assert status_client.calls == []
    assert read_step(fid) == "Failed"


@pytest.mark.parametrize(
    "remote, expected_error, expected_step",
    [
        ("Finished", None, "Done"),
        ("Fail", ConversionFailed, "Failed"),
        ("Waiting", ConversionWaiting, "Converting"),
        ("Converting", ConversionInProgress, "Converting"),
        ("Queued", ConversionInProgress, "Converting"),
        ("finished", ConversionInProgress, "Converting"),
        (None, ConversionInProgress, "Converting"),
    ],
)
def test_status_mapping_is_total(reconciler, status_client, seed_file, read_step, owner, remote, expected_error, expected_step):
    fid = seed_file(user_uuid=owner)
    status_client.script(remote)

    if expected_error is None:
        assert reconciler.finish_conversion(fid, owner) == {}
    else:
        with pytest.raises(expected_error):
            reconciler.finish_conversion(fid, owner)
    assert read_step(fid) == expected_step


def test_transient_results_allow_repeated_polling(reconciler, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner, step=ConvertStep.NONE)
    status_client.script("Waiting", "Converting", "Converting", "Finished")

    with pytest.raises(ConversionWaiting):
        reconciler.finish_conversion(fid, owner)
    with pytest.raises(ConversionInProgress):
        reconciler.finish_conversion(fid, owner)
    with pytest.raises(ConversionInProgress):
        reconciler.finish_conversion(fid, owner)
    assert read_step(fid) == "None"

    assert reconciler.finish_conversion(fid, owner) == {}
    assert read_step(fid) == "Done"
    assert len(status_client.calls) == 4


def test_other_owner_cannot_reconcile(reconciler, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner)
    status_client.script(RemoteConversionStatus.FINISHED)
    intruder = str(uuid.uuid4())

    with pytest.raises(RecordNotFound):
        reconciler.finish_conversion(fid, intruder)
    assert status_client.calls == []
    assert read_step(fid) == "Converting"


def test_missing_ownership_link_is_not_found(reconciler, status_client, seed_file, owner):
    fid = seed_file(user_uuid=owner, owned=False)

    with pytest.raises(RecordNotFound):
        reconciler.finish_conversion(fid, owner)
    assert status_client.calls == []


def test_ownership_without_file_row_is_not_found(reconciler, engine, status_client, owner):
    from sqlalchemy import text as sql_text

    fid = str(uuid.uuid4())
    with engine.begin() as conn:
        conn.execute(
            sql_text("INSERT INTO cloud_storage_user_files (user_uuid, file_uuid, created_at) VALUES (:u, :f, 'x')"),
            {"u": owner, "f": fid},
        )

    with pytest.raises(RecordNotFound):
        reconciler.finish_conversion(fid, owner)


def test_remote_error_propagates_without_transition(reconciler, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner)
    status_client.error = RemoteQueryError(detail="Conversion service unreachable")

    with pytest.raises(RemoteQueryError):
        reconciler.finish_conversion(fid, owner)
    assert read_step(fid) == "Converting"


def test_missing_task_coordinates_skip_remote_query(reconciler, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner, step=ConvertStep.NONE, task_uuid=None, region=None)

    with pytest.raises(ConversionNotStarted):
        reconciler.finish_conversion(fid, owner)
    assert status_client.calls == []
    assert read_step(fid) == "None"


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://storage.example.com/a/deck.pptx", ResourceType.DYNAMIC),
        ("https://storage.example.com/a/report.pdf", ResourceType.STATIC),
        ("https://storage.example.com/a/archive", ResourceType.STATIC),
    ],
)
def test_resource_type_is_passed_to_client(reconciler, status_client, seed_file, owner, url, expected):
    fid = seed_file(user_uuid=owner, file_url=url, region="us-sv", task_uuid="task-42")
    status_client.script("Waiting")

    with pytest.raises(ConversionWaiting):
        reconciler.finish_conversion(fid, owner)
    assert status_client.calls == [("us-sv", "task-42", expected)]


def test_concurrent_callers_settle_on_one_terminal_step(engine, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner)
    barrier = threading.Barrier(2, timeout=5)
    # Both callers observe Converting and query before either writes
    status_client.script("Finished", "Fail")
    status_client.before_return = barrier.wait
    outcomes: dict[int, object] = {}

    def run(idx: int) -> None:
        reconciler = ConversionReconciler(ConvertStepStore(engine), status_client)
        try:
            outcomes[idx] = reconciler.finish_conversion(fid, owner)
        except ConvertError as exc:
            outcomes[idx] = exc

    threads = [threading.Thread(target=run, args=(i,)) for i in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    final = read_step(fid)
    assert final in {"Done", "Failed"}
    assert len(outcomes) == 2
    kinds = sorted(type(o).__name__ for o in outcomes.values())
    if final == "Done":
        assert kinds == ["AlreadyConverted", "dict"]
    else:
        assert kinds == ["ConversionFailed", "ConversionFailed"]


class _RacingStore(ConvertStepStore):
    """Store whose first compare-on-write loses to a simulated competing writer."""

    def __init__(self, engine, competing_step: ConvertStep) -> None:
        super().__init__(engine)
        self._competing_step = competing_step
        self._raced = False

    def advance_step(self, file_uuid, new_step, expected=None):
        if not self._raced and expected is not None:
            self._raced = True
            super().advance_step(file_uuid, self._competing_step)
        return super().advance_step(file_uuid, new_step, expected=expected)


def test_lost_race_reports_persisted_failure(engine, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner)
    status_client.script("Finished")
    reconciler = ConversionReconciler(_RacingStore(engine, ConvertStep.FAILED), status_client)

    with pytest.raises(ConversionFailed):
        reconciler.finish_conversion(fid, owner)
    assert read_step(fid) == "Failed"


def test_lost_race_reports_persisted_done(engine, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner)
    status_client.script("Fail")
    reconciler = ConversionReconciler(_RacingStore(engine, ConvertStep.DONE), status_client)

    with pytest.raises(AlreadyConverted):
        reconciler.finish_conversion(fid, owner)
    assert read_step(fid) == "Done"


def test_row_moved_to_converting_still_settles(engine, status_client, seed_file, read_step, owner):
    fid = seed_file(user_uuid=owner, step=ConvertStep.NONE)
    status_client.script("Finished")
    reconciler = ConversionReconciler(_RacingStore(engine, ConvertStep.CONVERTING), status_client)

    assert reconciler.finish_conversion(fid, owner) == {}
    assert read_step(fid) == "Done"
