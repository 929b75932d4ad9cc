"""
Unit tests for the LLM-backed egg predictor.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from config import Confidence, Gender
from models.base import BaseLLM, ImagePart, ModelError, ModelResponse, RateLimitError
from pipeline.inputs import ImageInput
from pipeline.predictor import EggPredictor, PredictionError, PredictorConfig, create_predictor
from prompts.builders import MeasurementPromptBuilder


def llm_returning(content):
    llm = MagicMock(spec=BaseLLM)
    llm.model = "gemini-2.5-flash"
    llm.call.return_value = ModelResponse(content=content, model="gemini-2.5-flash")
    return llm


def prediction_json(gender="Female", confidence="High", reasoning="Rounded egg."):
    return json.dumps({"predictedGender": gender, "confidence": confidence, "reasoning": reasoning})


class TestMeasurementPrediction:
    """Test predictions from caliper measurements."""

    def test_returns_typed_result(self):
        predictor = EggPredictor(llm_returning(prediction_json()))

        result = predictor.predict_from_measurements(57.0, 42.0, 60.0)

        assert result.predicted_gender is Gender.FEMALE
        assert result.confidence is Confidence.HIGH
        assert result.reasoning == "Rounded egg."

    def test_prompt_carries_measurements_and_shape_index(self):
        llm = llm_returning(prediction_json())
        EggPredictor(llm).predict_from_measurements(57.0, 42.0, 60.0)

        kwargs = llm.call.call_args.kwargs
        assert "Long Axis (Length): 57.00 mm" in kwargs['user_prompt']
        assert "Calculated Shape Index: 73.68" in kwargs['user_prompt']
        assert '"predictedGender"' in kwargs['user_prompt']
        assert kwargs['images'] is None
        assert kwargs['json_mode'] is True

    def test_uses_configured_sampling(self):
        llm = llm_returning(prediction_json())
        predictor = EggPredictor(llm, PredictorConfig(model="gpt-4o", temperature=0.7, max_tokens=200))

        predictor.predict_from_measurements(57.0, 42.0, 60.0)

        assert llm.call.call_args.kwargs['temperature'] == 0.7
        assert llm.call.call_args.kwargs['max_tokens'] == 200

    def test_builder_metadata(self):
        prompt = MeasurementPromptBuilder().build(long_axis_mm=50.0, short_axis_mm=40.0, weight_g=55.0)
        assert prompt.metadata['shape_index'] == pytest.approx(80.0)
        assert "above 74 leans female" in prompt.user_prompt


class TestImagePrediction:
    """Test predictions from photos."""

    def test_sends_image_part(self):
        llm = llm_returning(prediction_json("Male", "Medium", "Pointed."))
        image = ImageInput(id="egg.png", data=b"\x89PNG...", mime_type="image/png")

        result = EggPredictor(llm).predict_from_image(image)

        assert result.predicted_gender is Gender.MALE
        assert llm.call.call_args.kwargs['images'] == [ImagePart(data=b"\x89PNG...", mime_type="image/png")]

    def test_rejects_empty_image(self):
        llm = llm_returning(prediction_json())

        with pytest.raises(ValueError):
            EggPredictor(llm).predict_from_image(ImageInput(id="x", data=b""))

        llm.call.assert_not_called()


class TestResponseHandling:
    """Test how model output is validated."""

    def test_code_fenced_json(self):
        content = "```json\n" + prediction_json("Uncertain", "Low", "Blurry.") + "\n```"
        result = EggPredictor(llm_returning(content)).predict_from_measurements(57.0, 42.0, 60.0)

        assert result.predicted_gender is Gender.UNCERTAIN
        assert result.confidence is Confidence.LOW

    def test_labels_are_normalized(self):
        content = prediction_json(" female ", "HIGH")
        result = EggPredictor(llm_returning(content)).predict_from_measurements(57.0, 42.0, 60.0)

        assert result.predicted_gender is Gender.FEMALE

    @pytest.mark.parametrize("content", [
        "I think it is a boy.",
        prediction_json(gender="Rooster"),
        prediction_json(confidence="Certain"),
        "[1, 2, 3]",
    ])
    def test_unusable_output_raises(self, content):
        with pytest.raises(PredictionError):
            EggPredictor(llm_returning(content)).predict_from_measurements(57.0, 42.0, 60.0)

    @pytest.mark.parametrize("error", [ModelError("down"), RateLimitError("slow down")])
    def test_llm_errors_become_prediction_errors(self, error):
        llm = llm_returning("")
        llm.call.side_effect = error

        with pytest.raises(PredictionError) as exc_info:
            EggPredictor(llm).predict_from_measurements(57.0, 42.0, 60.0)

        assert exc_info.value.__cause__ is error


class TestCreatePredictor:
    """Test the factory."""

    def test_builds_llm_for_model(self):
        with patch('pipeline.predictor.create_llm') as mock_create:
            predictor = create_predictor(model="claude-sonnet-4-5", api_keys={"anthropic": "k"}, temperature=0.5)

        mock_create.assert_called_once_with("claude-sonnet-4-5", {"anthropic": "k"})
        assert predictor.llm is mock_create.return_value
        assert predictor.config.temperature == 0.5
