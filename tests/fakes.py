"""
Test doubles shared by the test modules.
"""

import io
import threading
import time
from typing import Dict, List, Optional, Union

from PIL import Image

from config import Confidence, Gender
from pipeline.predictor import PredictionClient, PredictionError, PredictionResult

Outcome = Union[Gender, Exception]


def make_png(size=(40, 30), color=(230, 220, 200)) -> bytes:
    """Small in-memory PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_mpo(size=(40, 30)) -> bytes:
    """Two-frame multi-picture JPEG, as written by phone cameras."""
    buffer = io.BytesIO()
    first = Image.new("RGB", size, (230, 220, 200))
    second = Image.new("RGB", size, (200, 190, 170))
    first.save(buffer, format="MPO", save_all=True, append_images=[second])
    return buffer.getvalue()


class FakePredictionClient(PredictionClient):
    """
    Scripted prediction client.

    Image outcomes are keyed by image id, measurement outcomes by the long
    axis value. Unlisted items get ``default``. Every call is recorded.
    """

    def __init__(
        self,
        image_outcomes: Optional[Dict[str, Outcome]] = None,
        measurement_outcomes: Optional[Dict[float, Outcome]] = None,
        default: Outcome = Gender.MALE,
        delays: Optional[Dict[object, float]] = None,
        barrier: Optional[threading.Barrier] = None,
        block_until: Optional[Dict[object, threading.Event]] = None
    ):
        self.image_outcomes = image_outcomes or {}
        self.measurement_outcomes = measurement_outcomes or {}
        self.default = default
        self.delays = delays or {}
        self.barrier = barrier
        self.block_until = block_until or {}
        self.calls: List[object] = []
        self._lock = threading.Lock()

    def predict_from_image(self, image) -> PredictionResult:
        return self._respond(image.id, self.image_outcomes.get(image.id, self.default))

    def predict_from_measurements(self, long_axis_mm, short_axis_mm, weight_g) -> PredictionResult:
        outcome = self.measurement_outcomes.get(long_axis_mm, self.default)
        return self._respond(long_axis_mm, outcome)

    def _respond(self, key, outcome: Outcome) -> PredictionResult:
        with self._lock:
            self.calls.append(key)

        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        if key in self.block_until:
            self.block_until[key].wait(timeout=5)
        if key in self.delays:
            time.sleep(self.delays[key])

        if isinstance(outcome, Exception):
            raise outcome
        return PredictionResult(
            predicted_gender=outcome,
            confidence=Confidence.HIGH,
            reasoning=f"{outcome.value} shaped egg."
        )


def failure(message: str = "service unavailable") -> PredictionError:
    return PredictionError(message)
