"""
Configuration module for the Egg Gender Prediction pipeline.

This module centralizes all configuration constants and default values
used throughout the application.

IMPORTANT: This module should ONLY import from the standard library and typing.
Do not import from project modules to avoid circular dependencies.
All project modules can safely import from this config.
"""

import os
from enum import Enum
from typing import List

# =============================================================================
# API Configuration
# =============================================================================

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TOP_P = 1.0

# =============================================================================
# Processing Configuration
# =============================================================================

DEFAULT_MAX_WORKERS = 8     # Upper bound on concurrent prediction calls per batch
DEFAULT_POLL_INTERVAL = 0.1  # Seconds between cancellation checks while waiting

# =============================================================================
# Model Provider Identifiers
# =============================================================================

PROVIDER_OPENAI = "openai"
PROVIDER_GEMINI = "gemini"
PROVIDER_ANTHROPIC = "anthropic"

# Model Name Patterns
OPENAI_MODELS = ["gpt-", "o1-", "o3-", "o4-"]
GEMINI_MODELS = ["gemini-"]
ANTHROPIC_MODELS = ["claude-"]

# =============================================================================
# Prediction Vocabulary
# =============================================================================

class Gender(str, Enum):
    """Predicted chick gender."""
    MALE = "Male"
    FEMALE = "Female"
    UNCERTAIN = "Uncertain"


class Confidence(str, Enum):
    """Confidence label attached to a prediction."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class AnalysisType(str, Enum):
    """How the analyzed egg was submitted."""
    IMAGE = "Image"
    LIVE_CAMERA = "Live Camera"
    CALCULATOR = "Calculator"


# Analysis types whose inputs are images rather than measurements
IMAGE_ANALYSIS_TYPES = (AnalysisType.IMAGE, AnalysisType.LIVE_CAMERA)

# Genders counted by the aggregate statistics
COUNTED_GENDERS = (Gender.MALE.value, Gender.FEMALE.value)

# Shape index above which eggs lean female (used in measurement prompts)
SHAPE_INDEX_THRESHOLD = 74

# =============================================================================
# Input Configuration
# =============================================================================

COL_ID = 'id'
COL_LONG_AXIS = 'long_axis_mm'
COL_SHORT_AXIS = 'short_axis_mm'
COL_WEIGHT = 'weight_g'
REQUIRED_COLUMNS = [COL_LONG_AXIS, COL_SHORT_AXIS, COL_WEIGHT]

SUPPORTED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/webp", "image/gif"]
PREVIEW_SIZE = (160, 160)

# =============================================================================
# Report Configuration
# =============================================================================

REPORT_HEADERS: List[str] = [
    'Timestamp',
    'Batch Number',
    'Analysis Type',
    'Predicted Gender',
    'Confidence',
    'AI Reasoning',
]
REPORT_FILE_PREFIX = "egg_gender_prediction_report"
DEFAULT_REPORT_DIR = "data/reports"

# =============================================================================
# Expert Search Configuration
# =============================================================================

SERPER_API_URL = "https://google.serper.dev/search"
TOP_SEARCH_RESULTS = 5
SEARCH_TIMEOUT = 30

# =============================================================================
# Default Models
# =============================================================================

# Users can override the model by setting EGG_GENDER_MODEL in .env
DEFAULT_PRIMARY_MODEL = os.getenv('EGG_GENDER_MODEL', 'gemini-2.5-flash')

__all__ = [
    'DEFAULT_TEMPERATURE',
    'DEFAULT_MAX_TOKENS',
    'DEFAULT_TOP_P',
    'DEFAULT_MAX_WORKERS',
    'DEFAULT_POLL_INTERVAL',
    'PROVIDER_OPENAI',
    'PROVIDER_GEMINI',
    'PROVIDER_ANTHROPIC',
    'OPENAI_MODELS',
    'GEMINI_MODELS',
    'ANTHROPIC_MODELS',
    'Gender',
    'Confidence',
    'AnalysisType',
    'IMAGE_ANALYSIS_TYPES',
    'COUNTED_GENDERS',
    'SHAPE_INDEX_THRESHOLD',
    'COL_ID',
    'COL_LONG_AXIS',
    'COL_SHORT_AXIS',
    'COL_WEIGHT',
    'REQUIRED_COLUMNS',
    'SUPPORTED_IMAGE_TYPES',
    'PREVIEW_SIZE',
    'REPORT_HEADERS',
    'REPORT_FILE_PREFIX',
    'DEFAULT_REPORT_DIR',
    'SERPER_API_URL',
    'TOP_SEARCH_RESULTS',
    'SEARCH_TIMEOUT',
    'DEFAULT_PRIMARY_MODEL',
]
