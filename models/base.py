"""
Base classes and data structures for LLM models.

This module provides:
- ModelResponse: Standard response structure from LLM calls
- ImagePart: Inline image attached to a prompt
- BaseLLM: Abstract base class for LLM implementations
"""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ModelResponse:
    """
    Standard response structure from LLM calls.

    Attributes:
        content: The text content of the response
        model: Model identifier that generated the response
        usage: Token usage information
        raw_response: Optional raw response object from the provider
    """
    content: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)
    raw_response: Optional[Any] = None


@dataclass(frozen=True)
class ImagePart:
    """Raw image bytes sent alongside a prompt."""
    data: bytes
    mime_type: str

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode('ascii')

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"


class BaseLLM(ABC):
    """
    Abstract base class for LLM implementations.

    All LLM provider classes should inherit from this class and implement
    the call() method.

    Example:
        class GeminiLLM(BaseLLM):
            def call(self, system_prompt, user_prompt, images=None, **kwargs):
                # Implementation
                return ModelResponse(...)

        llm = GeminiLLM(api_key="...")
        response = llm.call("You are a poultry scientist.", "Describe this egg.",
                            images=[ImagePart(data, "image/jpeg")])
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        default_temperature: float = 0.0,
        default_max_tokens: int = 1024
    ):
        """
        Initialize the LLM.

        Args:
            api_key: API key for the provider
            model: Default model to use
            default_temperature: Default temperature for generation
            default_max_tokens: Default max tokens for generation
        """
        self.api_key = api_key
        self.model = model
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens

    @abstractmethod
    def call(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        images: Optional[List[ImagePart]] = None,
        json_mode: bool = False,
        **kwargs
    ) -> ModelResponse:
        """
        Make a call to the LLM.

        Args:
            system_prompt: System prompt/instruction
            user_prompt: User message/query
            temperature: Sampling temperature (0.0 = deterministic)
            max_tokens: Maximum tokens in response
            images: Optional images to attach to the user message
            json_mode: Ask the provider for a JSON-only response where supported
            **kwargs: Additional provider-specific parameters

        Returns:
            ModelResponse containing the response and metadata
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model})"


class LLMError(Exception):
    """Base exception for LLM-related errors."""
    pass


class APIKeyError(LLMError):
    """Raised when API key is missing or invalid."""
    pass


class RateLimitError(LLMError):
    """Raised when rate limit is exceeded."""
    pass


class ModelError(LLMError):
    """Raised when there's an error with the model."""
    pass
