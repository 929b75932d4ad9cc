"""
Robust JSON parsing utilities for LLM responses.

This module provides functions to extract and parse JSON from LLM outputs
that may contain additional text or formatting artifacts, and to check a
parsed prediction against the expected vocabulary.
"""

import json
import logging
from enum import Enum
from typing import Any, Dict, Optional, Type

from config import Confidence, Gender

logger = logging.getLogger(__name__)


def extract_json_from_response(response: str) -> str:
    """
    Extract JSON object from LLM response that may contain additional text.

    Handles common formatting issues:
    - Markdown code fences (```json ... ```)
    - Text before/after the JSON
    - Nested braces

    Args:
        response: Raw LLM response

    Returns:
        Extracted JSON string or original response if no JSON found
    """
    if not response:
        return response

    cleaned = response.strip()

    if cleaned.startswith('```json'):
        cleaned = cleaned[7:]
    elif cleaned.startswith('```'):
        cleaned = cleaned[3:]

    if cleaned.endswith('```'):
        cleaned = cleaned[:-3]

    cleaned = cleaned.strip()

    start_index = cleaned.find('{')
    if start_index == -1:
        return response

    # Find the matching closing brace, ignoring braces inside strings
    brace_count = 0
    in_string = False
    escaped = False
    for i, char in enumerate(cleaned[start_index:], start=start_index):
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == '{':
            brace_count += 1
        elif char == '}':
            brace_count -= 1
            if brace_count == 0:
                return cleaned[start_index:i + 1]

    # Fallback to simple rfind
    end_index = cleaned.rfind('}')
    if end_index > start_index:
        return cleaned[start_index:end_index + 1]

    return response


def parse_json_response(response: str, verbose: bool = False) -> Dict[str, Any]:
    """
    Parse the LLM's JSON response.

    Args:
        response: Raw LLM response, expected to contain a JSON object
        verbose: Whether to log the cleaned payload

    Returns:
        Dictionary containing parsed results or error structure if parsing fails
    """
    clean_response = extract_json_from_response(response)

    if verbose:
        logger.debug("Cleaned model output: %s", clean_response)

    try:
        parsed = json.loads(clean_response)
    except (json.JSONDecodeError, TypeError) as e:
        logger.debug("Error decoding JSON: %s", e)
        return {
            'error': True,
            'error_message': f'JSON parsing failed: {e}',
            'raw_response': response
        }

    if not isinstance(parsed, dict):
        return {
            'error': True,
            'error_message': f'Expected a JSON object, got {type(parsed).__name__}',
            'raw_response': response
        }

    return parsed


def _match_label(value: Any, enum_cls: Type[Enum]) -> Optional[Enum]:
    """Match a free-form label onto an enum member, ignoring case and padding."""
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    for member in enum_cls:
        if member.value.lower() == normalized:
            return member
    return None


def validate_prediction_response(parsed: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate that the parsed response is a usable gender prediction.

    Args:
        parsed: Parsed JSON response

    Returns:
        Dict with 'predictedGender' (Gender), 'confidence' (Confidence)
        and 'reasoning' (str)

    Raises:
        ValueError: If parsing failed upstream or a label is outside the
            expected vocabulary
    """
    if parsed.get('error'):
        raise ValueError(parsed.get('error_message', 'Unparseable model response'))

    gender = _match_label(parsed.get('predictedGender'), Gender)
    if gender is None:
        raise ValueError(f"Unexpected predictedGender: {parsed.get('predictedGender')!r}")

    confidence = _match_label(parsed.get('confidence'), Confidence)
    if confidence is None:
        raise ValueError(f"Unexpected confidence: {parsed.get('confidence')!r}")

    reasoning = parsed.get('reasoning')
    if reasoning is None:
        reasoning = ''

    return {
        'predictedGender': gender,
        'confidence': confidence,
        'reasoning': str(reasoning).strip(),
    }
