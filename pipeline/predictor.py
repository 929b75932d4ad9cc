"""
Egg Gender Predictor

This module provides the prediction client used by the batch coordinator:
prompt building -> model calling -> response validation, for one egg at a
time.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from config import (
    Confidence,
    Gender,
    DEFAULT_PRIMARY_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_MAX_TOKENS,
)
from models.base import BaseLLM, ImagePart, LLMError
from models.llm_clients import create_llm
from prompts.base_builder import PromptOutput
from prompts.builders import ImagePromptBuilder, MeasurementPromptBuilder
from utils.json_parser import parse_json_response, validate_prediction_response

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionResult:
    """Gender prediction for a single egg."""
    predicted_gender: Gender
    confidence: Confidence
    reasoning: str


class PredictionError(Exception):
    """A single prediction call failed or returned unusable data."""
    pass


class PredictionClient(ABC):
    """
    Interface the batch coordinator needs from a prediction service.

    Either method may raise; the coordinator counts the failure and moves on.
    """

    @abstractmethod
    def predict_from_image(self, image) -> PredictionResult:
        """Predict from an ImageInput carrying non-empty, decodable image bytes."""
        pass

    @abstractmethod
    def predict_from_measurements(
        self,
        long_axis_mm: float,
        short_axis_mm: float,
        weight_g: float
    ) -> PredictionResult:
        """Predict from raw caliper measurements."""
        pass


@dataclass
class PredictorConfig:
    """Configuration for prediction calls."""
    model: str = DEFAULT_PRIMARY_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS


class EggPredictor(PredictionClient):
    """
    LLM-backed prediction client.

    Example:
        api_keys = {'gemini': os.getenv('GEMINI_API_KEY')}
        predictor = create_predictor(model='gemini-2.5-flash', api_keys=api_keys)

        result = predictor.predict_from_measurements(57.2, 42.5, 60.1)
        print(result.predicted_gender, result.confidence)
    """

    def __init__(self, llm: BaseLLM, config: Optional[PredictorConfig] = None):
        """
        Initialize the predictor.

        Args:
            llm: Model client used for every call
            config: Prediction configuration
        """
        self.llm = llm
        self.config = config or PredictorConfig(model=llm.model or DEFAULT_PRIMARY_MODEL)
        self.image_builder = ImagePromptBuilder()
        self.measurement_builder = MeasurementPromptBuilder()

    def predict_from_image(self, image) -> PredictionResult:
        if not getattr(image, 'data', None):
            raise ValueError("predict_from_image requires non-empty image data")

        prompt = self.image_builder.build()
        return self._predict(prompt, images=[image.to_image_part()])

    def predict_from_measurements(
        self,
        long_axis_mm: float,
        short_axis_mm: float,
        weight_g: float
    ) -> PredictionResult:
        prompt = self.measurement_builder.build(
            long_axis_mm=long_axis_mm,
            short_axis_mm=short_axis_mm,
            weight_g=weight_g
        )
        return self._predict(prompt)

    def _predict(
        self,
        prompt: PromptOutput,
        images: Optional[List[ImagePart]] = None
    ) -> PredictionResult:
        """Call the model and turn its answer into a PredictionResult."""
        try:
            response = self.llm.call(
                system_prompt=prompt.system_prompt,
                user_prompt=prompt.user_prompt,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                images=images,
                json_mode=True
            )
        except LLMError as e:
            raise PredictionError(f"Prediction call failed: {e}") from e

        parsed = parse_json_response(response.content)
        try:
            validated = validate_prediction_response(parsed)
        except ValueError as e:
            logger.debug("Rejected model output: %r", response.content)
            raise PredictionError(f"Unusable prediction from {response.model}: {e}") from e

        return PredictionResult(
            predicted_gender=validated['predictedGender'],
            confidence=validated['confidence'],
            reasoning=validated['reasoning']
        )

    def __repr__(self) -> str:
        return f"EggPredictor(llm={self.llm!r})"


def create_predictor(
    model: str = DEFAULT_PRIMARY_MODEL,
    api_keys: Optional[Dict[str, Optional[str]]] = None,
    **kwargs
) -> EggPredictor:
    """
    Factory function to create an EggPredictor.

    Args:
        model: Model to use for prediction
        api_keys: API keys dictionary
        **kwargs: Additional PredictorConfig options

    Returns:
        Configured EggPredictor instance
    """
    config = PredictorConfig(model=model, **kwargs)
    llm = create_llm(model, api_keys or {})
    return EggPredictor(llm, config)
