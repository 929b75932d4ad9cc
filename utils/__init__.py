"""
Egg Gender Prediction - Utility Modules

This package contains utility modules for the prediction pipeline:
- json_parser: JSON parsing of model output
- logger: Logging utilities
- image_loader: Image loading, verification and preview thumbnails
- report_exporter: CSV/JSON report export

LLM clients, prompts, and pipeline modules should be imported from their
respective packages (models/, prompts/, pipeline/, evaluation/).
"""

__version__ = '1.0.0'

from utils.json_parser import (
    extract_json_from_response,
    parse_json_response,
    validate_prediction_response,
)

from utils.logger import (
    setup_logger,
    get_logger,
    SessionLogger,
)

__all__ = [
    # JSON parser
    'extract_json_from_response',
    'parse_json_response',
    'validate_prediction_response',
    # Logger
    'setup_logger',
    'get_logger',
    'SessionLogger',
]
