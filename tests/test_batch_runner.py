"""
Unit tests for the batch coordinator.
"""

import re
import threading
from unittest.mock import Mock

import pytest

from config import AnalysisType, Gender
from pipeline.batch_runner import (
    BatchConfig,
    BatchCoordinator,
    CancellationToken,
    OutcomeStatus,
)
from pipeline.inputs import ImageInput, MeasurementInput, ValidationError
from pipeline.records import AnalysisRecord, RecordStore
from utils.logger import SessionLogger
from fakes import FakePredictionClient, failure, make_mpo, make_png

TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def images(*ids):
    data = make_png()
    return [ImageInput(id=image_id, data=data, mime_type="image/png") for image_id in ids]


def measurement(row_id, long_axis, short_axis="42", weight="60"):
    return MeasurementInput(id=row_id, long_axis_mm=long_axis, short_axis_mm=short_axis, weight_g=weight)


@pytest.fixture
def store():
    return RecordStore()


class TestImageBatches:
    """Test image and live camera batches."""

    def test_all_succeed(self, store):
        client = FakePredictionClient(image_outcomes={"b": Gender.FEMALE})
        coordinator = BatchCoordinator(client, store)

        result = coordinator.run_batch("B-17", AnalysisType.IMAGE, images("a", "b", "c"))

        assert sorted(client.calls) == ["a", "b", "c"]
        assert len(result.succeeded) == 3
        assert result.failed_count == 0
        assert len(store) == 3
        assert sorted(r.gender for r in store) == ["Female", "Male", "Male"]
        assert all(r.batch_number == "B-17" for r in store)
        assert all(r.analysis_type is AnalysisType.IMAGE for r in store)

    def test_failures_are_counted_not_raised(self, store):
        client = FakePredictionClient(image_outcomes={"b": failure(), "d": failure("timeout")})
        coordinator = BatchCoordinator(client, store)

        result = coordinator.run_batch("B-17", AnalysisType.IMAGE, images("a", "b", "c", "d", "e"))

        assert len(client.calls) == 5
        assert len(result.succeeded) == 3
        assert result.failed_count == 2
        assert set(result.failures) == {"b", "d"}
        assert len(store) == 3

    def test_all_fail(self, store):
        client = FakePredictionClient(default=failure())
        coordinator = BatchCoordinator(client, store)

        result = coordinator.run_batch("B-17", AnalysisType.IMAGE, images("a", "b"))

        assert result.succeeded == []
        assert result.failed_count == 2
        assert len(store) == 0

    def test_unexpected_exception_is_a_failure(self, store):
        client = FakePredictionClient(image_outcomes={"a": RuntimeError("boom")})
        coordinator = BatchCoordinator(client, store)

        result = coordinator.run_batch("B-17", AnalysisType.IMAGE, images("a", "b"))

        assert result.failed_count == 1
        assert str(result.failures["a"]) == "boom"

    @pytest.mark.parametrize("analysis_type", [AnalysisType.IMAGE, AnalysisType.LIVE_CAMERA])
    def test_uncertain_image_results_are_stored(self, store, analysis_type):
        client = FakePredictionClient(default=Gender.UNCERTAIN)
        coordinator = BatchCoordinator(client, store)

        result = coordinator.run_batch("B-17", analysis_type, images("a"))

        assert len(result.recorded) == 1
        assert store.all()[0].gender == "Uncertain"
        assert store.all()[0].analysis_type is analysis_type

    def test_multi_picture_jpeg_is_analyzed(self, store):
        client = FakePredictionClient()
        coordinator = BatchCoordinator(client, store)

        result = coordinator.run_batch("B-1", AnalysisType.IMAGE, [ImageInput(id="phone.jpg", data=make_mpo())])

        assert client.calls == ["phone.jpg"]
        assert len(result.recorded) == 1

    def test_image_reasoning_is_not_prefixed(self, store):
        coordinator = BatchCoordinator(FakePredictionClient(), store)

        coordinator.run_batch("B-17", AnalysisType.IMAGE, images("a"))

        assert store.all()[0].reasoning == "Male shaped egg."


class TestMeasurementBatches:
    """Test calculator batches."""

    def test_reasoning_prefixed_with_shape_index(self, store):
        coordinator = BatchCoordinator(FakePredictionClient(), store)

        coordinator.run_batch("B-18", AnalysisType.CALCULATOR, [measurement("1", "57")])

        assert store.all()[0].reasoning == "Shape Index: 73.68. Male shaped egg."

    def test_client_receives_parsed_numbers(self, store):
        client = FakePredictionClient()
        coordinator = BatchCoordinator(client, store)

        coordinator.run_batch("B-18", AnalysisType.CALCULATOR, [measurement("1", " 57.5 ")])

        assert client.calls == [57.5]

    def test_uncertain_shown_but_not_stored(self, store):
        client = FakePredictionClient(measurement_outcomes={
            57.0: Gender.MALE,
            58.0: Gender.UNCERTAIN,
            59.0: Gender.FEMALE,
        })
        coordinator = BatchCoordinator(client, store)

        result = coordinator.run_batch("B-18", AnalysisType.CALCULATOR, [
            measurement("1", "57"),
            measurement("2", "58"),
            measurement("3", "59"),
        ])

        assert len(result.succeeded) == 3
        assert len(result.recorded) == 2
        assert sorted(r.gender for r in store) == ["Female", "Male"]
        uncertain = [r for r in result.succeeded if r.gender == "Uncertain"]
        assert len(uncertain) == 1
        assert all(r is not uncertain[0] for r in store)

    def test_failed_rows_counted(self, store):
        client = FakePredictionClient(measurement_outcomes={58.0: failure()})
        coordinator = BatchCoordinator(client, store)

        result = coordinator.run_batch("B-18", AnalysisType.CALCULATOR, [
            measurement("1", "57"),
            measurement("2", "58"),
        ])

        assert result.failed_count == 1
        assert list(result.failures) == ["2"]
        assert len(store) == 1


class TestValidationGate:
    """Test that invalid submissions never reach the client."""

    @pytest.mark.parametrize("batch_number", ["", "  "])
    def test_missing_batch_number_makes_no_calls(self, store, batch_number):
        client = FakePredictionClient()
        coordinator = BatchCoordinator(client, store)

        with pytest.raises(ValidationError):
            coordinator.run_batch(batch_number, AnalysisType.IMAGE, images("a", "b"))
        with pytest.raises(ValidationError):
            coordinator.run_batch(batch_number, AnalysisType.CALCULATOR, [measurement("1", "57")])

        assert client.calls == []
        assert len(store) == 0

    def test_one_invalid_row_makes_no_calls(self, store):
        client = FakePredictionClient()
        coordinator = BatchCoordinator(client, store)

        with pytest.raises(ValidationError) as exc_info:
            coordinator.run_batch("B-18", AnalysisType.CALCULATOR, [
                measurement("1", "57"),
                measurement("2", "42", "55"),
            ])

        assert list(exc_info.value.errors) == ["2"]
        assert client.calls == []
        assert len(store) == 0

    def test_batch_number_is_trimmed(self, store):
        coordinator = BatchCoordinator(FakePredictionClient(), store)

        result = coordinator.run_batch("  B-19  ", AnalysisType.IMAGE, images("a"))

        assert result.batch_number == "B-19"
        assert store.all()[0].batch_number == "B-19"


class TestConcurrency:
    """Test fan-out and await-all behavior."""

    def test_calls_run_in_parallel(self, store):
        """Test that every call is in flight at once; a serial run would break the barrier."""
        barrier = threading.Barrier(4)
        client = FakePredictionClient(barrier=barrier)
        coordinator = BatchCoordinator(client, store, BatchConfig(max_workers=4))

        result = coordinator.run_batch("B-17", AnalysisType.IMAGE, images("a", "b", "c", "d"))

        assert result.failed_count == 0
        assert len(store) == 4

    def test_waits_for_slow_calls(self, store):
        client = FakePredictionClient(delays={"slow": 0.3})
        coordinator = BatchCoordinator(client, store)

        result = coordinator.run_batch("B-17", AnalysisType.IMAGE, images("fast", "slow"))

        assert sorted(o.item_id for o in result.outcomes) == ["fast", "slow"]
        assert len(store) == 2

    def test_limited_workers_still_process_everything(self, store):
        client = FakePredictionClient()
        coordinator = BatchCoordinator(client, store, BatchConfig(max_workers=2))

        result = coordinator.run_batch("B-17", AnalysisType.IMAGE, images(*"abcdefg"))

        assert len(result.succeeded) == 7
        assert len(store) == 7

    def test_store_keeps_batch_order(self, store):
        coordinator = BatchCoordinator(FakePredictionClient(), store)

        coordinator.run_batch("B-1", AnalysisType.IMAGE, images("a", "b"))
        coordinator.run_batch("B-2", AnalysisType.CALCULATOR, [measurement("1", "57")])

        assert [r.batch_number for r in store] == ["B-1", "B-1", "B-2"]


class TestCancellation:
    """Test cancelling an in-flight batch."""

    def test_token_starts_uncancelled(self):
        token = CancellationToken()
        assert not token.is_cancelled
        token.cancel()
        assert token.is_cancelled

    def test_cancel_abandons_outstanding_calls(self, store):
        release = threading.Event()
        client = FakePredictionClient(block_until={"stuck": release})
        coordinator = BatchCoordinator(client, store, BatchConfig(max_workers=4, poll_interval=0.02))
        token = CancellationToken()
        timer = threading.Timer(0.3, token.cancel)
        timer.start()

        try:
            result = coordinator.run_batch("B-17", AnalysisType.IMAGE, images("a", "stuck", "b"), cancel_token=token)
        finally:
            release.set()
            timer.cancel()

        assert result.was_cancelled
        assert result.cancelled_count == 1
        assert [o.item_id for o in result.outcomes if o.status is OutcomeStatus.CANCELLED] == ["stuck"]
        assert len(result.succeeded) == 2
        assert len(store) == 2

    def test_unused_token_changes_nothing(self, store):
        coordinator = BatchCoordinator(FakePredictionClient(), store, BatchConfig(poll_interval=0.01))

        result = coordinator.run_batch("B-17", AnalysisType.IMAGE, images("a", "b"), cancel_token=CancellationToken())

        assert not result.was_cancelled
        assert len(store) == 2


class TestRecordsAndLogging:
    """Test record stamping and session logging."""

    def test_records_are_stamped(self, store):
        coordinator = BatchCoordinator(FakePredictionClient(), store)

        result = coordinator.run_batch("B-17", AnalysisType.IMAGE, images("a"))

        record = result.recorded[0]
        assert isinstance(record, AnalysisRecord)
        assert TIMESTAMP_PATTERN.match(record.timestamp)
        assert record.confidence == "High"

    def test_session_logger_receives_events(self, store):
        session = Mock(spec=SessionLogger)
        client = FakePredictionClient(image_outcomes={"b": failure()})
        coordinator = BatchCoordinator(client, store, session_logger=session)

        coordinator.run_batch("B-17", AnalysisType.IMAGE, images("a", "b"))

        session.log_batch_start.assert_called_once_with("B-17", "Image", 2)
        session.log_item_failure.assert_called_once()
        assert session.log_item_failure.call_args[0][:2] == ("B-17", "b")
        session.log_batch_result.assert_called_once_with(
            "B-17", succeeded=1, failed=1, cancelled=0, recorded=1
        )
