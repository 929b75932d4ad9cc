"""
Batch inputs and pre-dispatch validation.

Validation is all-or-nothing: every problem in a submission is collected
and reported together, and nothing is sent to the prediction service
unless the whole submission is valid.
"""

import math
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from config import (
    AnalysisType,
    IMAGE_ANALYSIS_TYPES,
    COL_ID,
    COL_LONG_AXIS,
    COL_SHORT_AXIS,
    COL_WEIGHT,
    REQUIRED_COLUMNS,
)
from models.base import ImagePart
from pipeline.shape_index import derive
from utils.image_loader import verify_image_bytes

GLOBAL_ERROR_KEY = 'global'

MSG_BATCH_REQUIRED = 'Batch Number is required.'
MSG_INPUTS_REQUIRED = 'At least one input is required.'
MSG_FIELDS_REQUIRED = 'All fields are required.'
MSG_INVALID_NUMBERS = 'Please enter valid, positive numbers.'
MSG_LENGTH_NOT_GREATER = 'Length must be greater than width.'
MSG_DUPLICATE_ID = 'Duplicate input id.'
MSG_WRONG_INPUT_KIND = 'Input does not match the analysis type.'


class ValidationError(ValueError):
    """
    A submission was rejected before anything was dispatched.

    Attributes:
        errors: Ordered mapping of 'global' or an input id to a message
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = OrderedDict(errors)
        details = "; ".join(f"{key}: {message}" for key, message in self.errors.items())
        super().__init__(f"Invalid submission: {details}")


@dataclass(frozen=True)
class MeasurementInput:
    """
    Caliper measurements of one egg.

    Values may arrive as numbers or as the raw strings a user typed;
    ``validate_measurements`` returns copies holding floats.
    """
    id: str
    long_axis_mm: Union[float, str, None]
    short_axis_mm: Union[float, str, None]
    weight_g: Union[float, str, None]

    @property
    def shape_index(self) -> float:
        # Recomputed on every access so it can never drift from the axes
        return derive(float(self.long_axis_mm), float(self.short_axis_mm))


@dataclass(frozen=True)
class ImageInput:
    """
    One egg photo.

    Attributes:
        id: Identifier within the batch
        data: Raw image bytes
        mime_type: MIME type of data
        source: Where the bytes came from (file path, camera, ...)
        preview: Thumbnail handle owned by the caller, see utils.image_loader
    """
    id: str
    data: bytes
    mime_type: str = 'image/jpeg'
    source: Optional[str] = None
    preview: Optional[Any] = field(default=None, compare=False, repr=False)

    def to_image_part(self) -> ImagePart:
        return ImagePart(data=self.data, mime_type=self.mime_type)


BatchInput = Union[MeasurementInput, ImageInput]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return isinstance(value, float) and math.isnan(value)


def _parse_positive(value: Any) -> Optional[float]:
    """Return value as a positive finite float, or None if it is not one."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def _add_error(errors: Dict[str, str], key: str, message: str) -> None:
    """Record a message under key, after any message already there for the same id."""
    previous = errors.get(key)
    if previous is None:
        errors[key] = message
    elif message not in previous:
        errors[key] = f"{previous} {message}"


def check_measurement(item: MeasurementInput) -> Tuple[Optional[MeasurementInput], Optional[str]]:
    """
    Validate one measurement row.

    Returns:
        (normalized input, None) when valid, otherwise (None, message)
    """
    raw = (item.long_axis_mm, item.short_axis_mm, item.weight_g)
    if any(_is_blank(value) for value in raw):
        return None, MSG_FIELDS_REQUIRED

    long_axis, short_axis, weight = (_parse_positive(value) for value in raw)
    if long_axis is None or short_axis is None or weight is None:
        return None, MSG_INVALID_NUMBERS

    if short_axis >= long_axis:
        return None, MSG_LENGTH_NOT_GREATER

    return replace(item, long_axis_mm=long_axis, short_axis_mm=short_axis, weight_g=weight), None


def check_image(item: ImageInput) -> Tuple[Optional[ImageInput], Optional[str]]:
    """
    Validate one image.

    Returns:
        (input with detected MIME type, None) when valid, otherwise (None, message)
    """
    try:
        mime_type = verify_image_bytes(item.data)
    except ValueError as exc:
        return None, str(exc)
    return replace(item, mime_type=mime_type), None


def validate_submission(
    batch_number: str,
    analysis_type: AnalysisType,
    inputs: Sequence[BatchInput]
) -> Tuple[str, List[BatchInput]]:
    """
    Validate a whole batch submission.

    Args:
        batch_number: User-supplied batch identifier
        analysis_type: Analysis type shared by every input
        inputs: Inputs to dispatch

    Returns:
        (trimmed batch number, normalized inputs in submission order)

    Raises:
        ValidationError: With every problem found, if any
    """
    errors: Dict[str, str] = OrderedDict()
    global_errors = []

    batch = str(batch_number).strip() if batch_number is not None else ''
    if not batch:
        global_errors.append(MSG_BATCH_REQUIRED)

    if not inputs:
        global_errors.append(MSG_INPUTS_REQUIRED)

    if global_errors:
        errors[GLOBAL_ERROR_KEY] = " ".join(global_errors)

    expects_images = AnalysisType(analysis_type) in IMAGE_ANALYSIS_TYPES
    expected_kind = ImageInput if expects_images else MeasurementInput

    normalized: List[BatchInput] = []
    seen_ids = set()
    for position, item in enumerate(inputs or []):
        item_id = str(getattr(item, 'id', position))

        if not isinstance(item, expected_kind):
            _add_error(errors, item_id, MSG_WRONG_INPUT_KIND)
            continue

        if item_id in seen_ids:
            _add_error(errors, item_id, MSG_DUPLICATE_ID)
            continue
        seen_ids.add(item_id)

        if expects_images:
            checked, message = check_image(item)
        else:
            checked, message = check_measurement(item)

        if message:
            _add_error(errors, item_id, message)
        else:
            normalized.append(checked)

    if errors:
        raise ValidationError(errors)

    return batch, normalized


def validate_measurements(inputs: Sequence[MeasurementInput]) -> List[MeasurementInput]:
    """Validate measurement rows on their own; raises ValidationError."""
    errors: Dict[str, str] = OrderedDict()
    normalized = []
    for item in inputs:
        checked, message = check_measurement(item)
        if message:
            _add_error(errors, str(item.id), message)
        else:
            normalized.append(checked)
    if errors:
        raise ValidationError(errors)
    return normalized


def validate_images(inputs: Sequence[ImageInput]) -> List[ImageInput]:
    """Validate images on their own; raises ValidationError."""
    errors: Dict[str, str] = OrderedDict()
    normalized = []
    for item in inputs:
        checked, message = check_image(item)
        if message:
            _add_error(errors, str(item.id), message)
        else:
            normalized.append(checked)
    if errors:
        raise ValidationError(errors)
    return normalized


def load_measurement_rows(file_path: str) -> List[MeasurementInput]:
    """
    Load egg measurements from a CSV file.

    Values are kept as the raw strings found in the file so validation can
    report each bad row. Rows without an id column value are numbered from 1.

    Args:
        file_path: CSV with long_axis_mm, short_axis_mm, weight_g and an
            optional id column

    Returns:
        One MeasurementInput per row

    Raises:
        ValueError: If required columns are missing
        FileNotFoundError: If the file doesn't exist
    """
    df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    df.columns = [str(col).strip() for col in df.columns]

    missing_columns = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_columns:
        raise ValueError(f"Missing required columns: {missing_columns}")

    rows = []
    for position, row in enumerate(df.to_dict(orient='records'), start=1):
        row_id = str(row.get(COL_ID, '')).strip() or str(position)
        rows.append(MeasurementInput(
            id=row_id,
            long_axis_mm=row[COL_LONG_AXIS],
            short_axis_mm=row[COL_SHORT_AXIS],
            weight_g=row[COL_WEIGHT],
        ))
    return rows
