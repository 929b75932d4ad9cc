"""
Batch Coordinator

This module runs one prediction per input for a batch of eggs, all in
parallel, and folds the successful results into the session record store.

Validation happens up front and is all-or-nothing. Execution is tolerant
per item: a failed call is counted and logged, never raised, and the batch
only completes once every call has settled.
"""

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from tqdm import tqdm

from config import (
    AnalysisType,
    Gender,
    IMAGE_ANALYSIS_TYPES,
    DEFAULT_MAX_WORKERS,
    DEFAULT_POLL_INTERVAL,
)
from pipeline.inputs import BatchInput, validate_submission
from pipeline.predictor import PredictionClient, PredictionResult
from pipeline.records import AnalysisRecord, RecordStore
from pipeline.shape_index import format_shape_index
from utils.logger import SessionLogger

logger = logging.getLogger(__name__)


class OutcomeStatus(Enum):
    """How a single item in a batch ended."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ItemOutcome:
    """Result of one input in a batch."""
    item_id: str
    status: OutcomeStatus
    record: Optional[AnalysisRecord] = None
    error: Optional[BaseException] = None


@dataclass
class BatchResult:
    """
    Everything a caller needs to display a finished batch.

    Attributes:
        batch_number: Trimmed batch identifier
        analysis_type: Analysis type of every item
        outcomes: One entry per input, in completion-processing order
            (cancelled items last)
        recorded: Records appended to the store by this batch
    """
    batch_number: str
    analysis_type: AnalysisType
    outcomes: List[ItemOutcome] = field(default_factory=list)
    recorded: List[AnalysisRecord] = field(default_factory=list)

    @property
    def succeeded(self) -> List[AnalysisRecord]:
        """Records for display, including ones withheld from the store."""
        return [o.record for o in self.outcomes if o.status is OutcomeStatus.SUCCEEDED]

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status is OutcomeStatus.FAILED)

    @property
    def cancelled_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status is OutcomeStatus.CANCELLED)

    @property
    def failures(self) -> Dict[str, BaseException]:
        return {o.item_id: o.error for o in self.outcomes if o.status is OutcomeStatus.FAILED}

    @property
    def was_cancelled(self) -> bool:
        return self.cancelled_count > 0


class CancellationToken:
    """Signal that an in-flight batch should stop waiting for results."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class BatchConfig:
    """Configuration for batch processing."""
    max_workers: int = DEFAULT_MAX_WORKERS
    poll_interval: float = DEFAULT_POLL_INTERVAL  # Cancellation check period while waiting
    show_progress: bool = False


class BatchCoordinator:
    """
    Fan-out/await-all runner for one batch at a time.

    This class handles:
    - Validating the submission before any call is made
    - Issuing one prediction call per input concurrently
    - Collecting every outcome without short-circuiting on failure
    - Appending qualifying records to the record store

    Example:
        store = RecordStore()
        coordinator = BatchCoordinator(create_predictor(api_keys=keys), store)

        result = coordinator.run_batch("B-17", AnalysisType.CALCULATOR, rows)
        print(len(result.succeeded), result.failed_count)
    """

    def __init__(
        self,
        client: PredictionClient,
        store: RecordStore,
        config: Optional[BatchConfig] = None,
        session_logger: Optional[SessionLogger] = None
    ):
        """
        Initialize the coordinator.

        Args:
            client: Prediction service used for every item
            store: Session record store that receives completed records
            config: Batch processing configuration
            session_logger: Optional session logger for batch-level events
        """
        self.client = client
        self.store = store
        self.config = config or BatchConfig()
        self.session_logger = session_logger

    def run_batch(
        self,
        batch_number: str,
        analysis_type: AnalysisType,
        inputs: Sequence[BatchInput],
        cancel_token: Optional[CancellationToken] = None
    ) -> BatchResult:
        """
        Predict every input of one batch.

        Args:
            batch_number: User-supplied batch identifier
            analysis_type: Image, Live Camera or Calculator
            inputs: ImageInputs for image types, MeasurementInputs for Calculator
            cancel_token: Optional token to stop waiting early

        Returns:
            BatchResult with per-item outcomes and the records stored

        Raises:
            ValidationError: If the submission is invalid; nothing is dispatched
        """
        analysis_type = AnalysisType(analysis_type)
        batch, items = validate_submission(batch_number, analysis_type, inputs)

        if self.session_logger:
            self.session_logger.log_batch_start(batch, analysis_type.value, len(items))
        else:
            logger.info(f"Batch '{batch}' ({analysis_type.value}): dispatching {len(items)} item(s)")

        outcomes = self._dispatch(batch, analysis_type, items, cancel_token)

        recorded = [
            o.record for o in outcomes
            if o.status is OutcomeStatus.SUCCEEDED and self._should_record(analysis_type, o.record)
        ]
        self.store.extend(recorded)

        result = BatchResult(
            batch_number=batch,
            analysis_type=analysis_type,
            outcomes=outcomes,
            recorded=recorded
        )

        if self.session_logger:
            self.session_logger.log_batch_result(
                batch,
                succeeded=len(result.succeeded),
                failed=result.failed_count,
                cancelled=result.cancelled_count,
                recorded=len(recorded)
            )
        else:
            logger.info(
                f"Batch '{batch}' complete: {len(result.succeeded)} succeeded, "
                f"{result.failed_count} failed, {len(recorded)} recorded"
            )

        return result

    def _dispatch(
        self,
        batch: str,
        analysis_type: AnalysisType,
        items: List[BatchInput],
        cancel_token: Optional[CancellationToken]
    ) -> List[ItemOutcome]:
        """Run every call and wait until all settle or the token fires."""
        outcomes: List[ItemOutcome] = []
        workers = max(1, min(len(items), self.config.max_workers))
        timeout = self.config.poll_interval if cancel_token is not None else None
        cancelled = False

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="egg-predict")
        try:
            future_to_item: Dict[Future, BatchInput] = {
                executor.submit(self._predict, analysis_type, item): item
                for item in items
            }
            pending = set(future_to_item)

            with tqdm(
                total=len(items),
                desc=f"Batch {batch}",
                disable=not self.config.show_progress
            ) as pbar:
                while pending:
                    if cancel_token is not None and cancel_token.is_cancelled:
                        cancelled = True
                        break

                    done, pending = wait(pending, timeout=timeout, return_when=FIRST_COMPLETED)
                    for future in done:
                        outcomes.append(self._settle(batch, analysis_type, future, future_to_item[future]))
                        pbar.update(1)

            if cancelled:
                # Keep whatever finished in the meantime, abandon the rest
                for future in pending:
                    item = future_to_item[future]
                    if future.done():
                        outcomes.append(self._settle(batch, analysis_type, future, item))
                    else:
                        future.cancel()
                        outcomes.append(ItemOutcome(item_id=str(item.id), status=OutcomeStatus.CANCELLED))
                logger.warning(f"Batch '{batch}' cancelled with {len(pending)} call(s) outstanding")
        finally:
            executor.shutdown(wait=not cancelled, cancel_futures=cancelled)

        return outcomes

    def _predict(self, analysis_type: AnalysisType, item: BatchInput) -> PredictionResult:
        """Issue the one call matching the analysis type."""
        if analysis_type in IMAGE_ANALYSIS_TYPES:
            return self.client.predict_from_image(item)
        return self.client.predict_from_measurements(
            item.long_axis_mm,
            item.short_axis_mm,
            item.weight_g
        )

    def _settle(
        self,
        batch: str,
        analysis_type: AnalysisType,
        future: Future,
        item: BatchInput
    ) -> ItemOutcome:
        """Turn a finished future into an outcome; failures are absorbed here."""
        item_id = str(item.id)
        try:
            result = future.result()
            record = self._build_record(batch, analysis_type, item, result)
        except Exception as e:
            if self.session_logger:
                self.session_logger.log_item_failure(batch, item_id, e)
            else:
                logger.error(f"Batch '{batch}' item '{item_id}' failed: {e}")
            return ItemOutcome(item_id=item_id, status=OutcomeStatus.FAILED, error=e)

        return ItemOutcome(item_id=item_id, status=OutcomeStatus.SUCCEEDED, record=record)

    @staticmethod
    def _build_record(
        batch: str,
        analysis_type: AnalysisType,
        item: BatchInput,
        result: PredictionResult
    ) -> AnalysisRecord:
        """Stamp a successful prediction as an analysis record."""
        reasoning = result.reasoning
        if analysis_type is AnalysisType.CALCULATOR:
            reasoning = f"Shape Index: {format_shape_index(item.shape_index)}. {reasoning}"

        return AnalysisRecord.create(
            batch_number=batch,
            analysis_type=analysis_type,
            gender=result.predicted_gender,
            confidence=result.confidence,
            reasoning=reasoning
        )

    @staticmethod
    def _should_record(analysis_type: AnalysisType, record: AnalysisRecord) -> bool:
        """
        Whether a successful record counts towards the session.

        Uncertain calculator results are shown but not stored; image and
        live camera results are stored whatever the gender.
        """
        if analysis_type is AnalysisType.CALCULATOR:
            return record.gender != Gender.UNCERTAIN.value
        return True
