"""
LLM client implementations for various providers.

This module provides class-based LLM implementations:
- GeminiLLM: Google Gemini models (default)
- OpenAILLM: OpenAI GPT models
- AnthropicLLM: Anthropic Claude models (direct API)

Every client accepts inline images so the same prompt pipeline serves
photo and measurement analysis. Also provides a factory function.
"""

from typing import Dict, List, Optional

import google.generativeai as genai
import openai
from anthropic import Anthropic
from openai import OpenAI

from models.base import BaseLLM, ImagePart, ModelResponse, APIKeyError, RateLimitError, ModelError
from config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    PROVIDER_ANTHROPIC,
    PROVIDER_GEMINI,
    PROVIDER_OPENAI,
    GEMINI_MODELS,
    ANTHROPIC_MODELS,
)


# =============================================================================
# Gemini LLM Implementation
# =============================================================================

class GeminiLLM(BaseLLM):
    """Google Gemini model implementation."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-2.5-flash",
        default_temperature: float = DEFAULT_TEMPERATURE,
        default_max_tokens: int = DEFAULT_MAX_TOKENS
    ):
        super().__init__(api_key, model, default_temperature, default_max_tokens)
        self._configured = False

    def _configure(self) -> None:
        """Configure Gemini API."""
        if not self._configured:
            if not self.api_key:
                raise APIKeyError("Google Gemini API key not provided")
            genai.configure(api_key=self.api_key)
            self._configured = True

    def call(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        images: Optional[List[ImagePart]] = None,
        json_mode: bool = False,
        top_p: Optional[float] = None,
        model: Optional[str] = None,
        **kwargs
    ) -> ModelResponse:
        """Call Gemini model."""
        try:
            self._configure()
            model_to_use = model or self.model

            generation_config = genai.GenerationConfig(
                temperature=temperature if temperature is not None else self.default_temperature,
                top_p=top_p if top_p is not None else DEFAULT_TOP_P,
                max_output_tokens=max_tokens or self.default_max_tokens,
                response_mime_type="application/json" if json_mode else "text/plain"
            )

            gemini_model = genai.GenerativeModel(
                model_name=model_to_use,
                system_instruction=system_prompt
            )

            # Images go first so the instruction text reads as a caption for them
            contents = [
                {"mime_type": image.mime_type, "data": image.data}
                for image in images or []
            ]
            contents.append(user_prompt)

            response = gemini_model.generate_content(
                contents,
                generation_config=generation_config
            )

            if not response.parts:
                feedback = getattr(response, 'prompt_feedback', None)
                block_reason = getattr(feedback, 'block_reason', 'UNKNOWN')
                raise ModelError(
                    f"Gemini response was empty or blocked.\n"
                    f"Block reason: {block_reason}\n"
                    f"Full feedback: {feedback}"
                )

            usage = {}
            if getattr(response, 'usage_metadata', None):
                metadata = response.usage_metadata
                thinking_tokens = getattr(metadata, 'thoughts_token_count', 0) or 0
                usage = {
                    'input_tokens': metadata.prompt_token_count or 0,
                    'output_tokens': (metadata.candidates_token_count or 0) + thinking_tokens,
                    'thinking_tokens': thinking_tokens,
                }

            return ModelResponse(
                content=response.text.strip(),
                model=model_to_use,
                usage=usage,
                raw_response=response
            )

        except (APIKeyError, ModelError):
            raise
        except Exception as e:
            raise ModelError(f"Error querying Gemini model '{self.model}': {e}") from e


# =============================================================================
# OpenAI LLM Implementation
# =============================================================================

class OpenAILLM(BaseLLM):
    """OpenAI GPT model implementation."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o",
        default_temperature: float = DEFAULT_TEMPERATURE,
        default_max_tokens: int = DEFAULT_MAX_TOKENS
    ):
        super().__init__(api_key, model, default_temperature, default_max_tokens)
        self.client = None

    def _get_client(self) -> OpenAI:
        """Get or create OpenAI client."""
        if self.client is None:
            if not self.api_key:
                raise APIKeyError("OpenAI API key not provided")
            self.client = OpenAI(api_key=self.api_key)
        return self.client

    def call(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        images: Optional[List[ImagePart]] = None,
        json_mode: bool = False,
        top_p: Optional[float] = None,
        model: Optional[str] = None,
        **kwargs
    ) -> ModelResponse:
        """Call OpenAI model."""
        try:
            client = self._get_client()
            model_to_use = model or self.model

            if images:
                user_content = [{"type": "text", "text": user_prompt}]
                user_content.extend(
                    {"type": "image_url", "image_url": {"url": image.to_data_uri()}}
                    for image in images
                )
            else:
                user_content = user_prompt

            request = dict(
                model=model_to_use,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content}
                ],
                temperature=temperature if temperature is not None else self.default_temperature,
                max_tokens=max_tokens or self.default_max_tokens,
                top_p=top_p if top_p is not None else DEFAULT_TOP_P
            )
            if json_mode:
                request['response_format'] = {"type": "json_object"}

            response = client.chat.completions.create(**request)

            content = response.choices[0].message.content or ""
            usage = {
                'input_tokens': response.usage.prompt_tokens if response.usage else 0,
                'output_tokens': response.usage.completion_tokens if response.usage else 0,
            }

            return ModelResponse(
                content=content.strip(),
                model=model_to_use,
                usage=usage,
                raw_response=response
            )

        except APIKeyError:
            raise
        except openai.RateLimitError as e:
            raise RateLimitError(f"OpenAI rate limit exceeded for '{self.model}': {e}") from e
        except Exception as e:
            raise ModelError(f"Error querying OpenAI model '{self.model}': {e}") from e


# =============================================================================
# Anthropic LLM Implementation
# =============================================================================

class AnthropicLLM(BaseLLM):
    """Anthropic Claude model implementation (direct API)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-sonnet-4-5",
        default_temperature: float = DEFAULT_TEMPERATURE,
        default_max_tokens: int = DEFAULT_MAX_TOKENS
    ):
        super().__init__(api_key, model, default_temperature, default_max_tokens)
        self.client = None

    def _get_client(self) -> Anthropic:
        """Get or create Anthropic client."""
        if self.client is None:
            if not self.api_key:
                raise APIKeyError("Anthropic API key not provided")
            self.client = Anthropic(api_key=self.api_key)
        return self.client

    def call(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        images: Optional[List[ImagePart]] = None,
        json_mode: bool = False,
        model: Optional[str] = None,
        **kwargs
    ) -> ModelResponse:
        """Call Anthropic model."""
        try:
            client = self._get_client()
            model_to_use = model or self.model

            user_content = [
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": image.mime_type,
                        "data": image.to_base64(),
                    },
                }
                for image in images or []
            ]
            user_content.append({"type": "text", "text": user_prompt})

            # No native JSON mode; the prompts already demand a bare JSON object
            response = client.messages.create(
                model=model_to_use,
                system=system_prompt,
                messages=[
                    {"role": "user", "content": user_content}
                ],
                temperature=temperature if temperature is not None else self.default_temperature,
                max_tokens=max_tokens or self.default_max_tokens
            )

            if response.content:
                content = response.content[0].text
            else:
                content = ""

            usage = {
                'input_tokens': response.usage.input_tokens if response.usage else 0,
                'output_tokens': response.usage.output_tokens if response.usage else 0,
            }

            return ModelResponse(
                content=content.strip(),
                model=model_to_use,
                usage=usage,
                raw_response=response
            )

        except APIKeyError:
            raise
        except Exception as e:
            raise ModelError(f"Error querying Anthropic model '{self.model}': {e}") from e


# =============================================================================
# Factory Function
# =============================================================================

def create_llm(
    model: str,
    api_keys: Dict[str, Optional[str]],
    **kwargs
) -> BaseLLM:
    """
    Factory function to create an LLM instance based on model name.

    Args:
        model: Model name or identifier
        api_keys: Dictionary of API keys keyed by provider name
        **kwargs: Additional arguments passed to the LLM constructor

    Returns:
        Appropriate LLM instance
    """
    provider = detect_provider(model)

    if provider == PROVIDER_GEMINI:
        return GeminiLLM(api_key=api_keys.get(PROVIDER_GEMINI), model=model, **kwargs)
    elif provider == PROVIDER_ANTHROPIC:
        return AnthropicLLM(api_key=api_keys.get(PROVIDER_ANTHROPIC), model=model, **kwargs)
    else:
        return OpenAILLM(api_key=api_keys.get(PROVIDER_OPENAI), model=model, **kwargs)


def detect_provider(model_identifier: str) -> str:
    """
    Detect the LLM provider based on model identifier.

    Args:
        model_identifier: Model name

    Returns:
        Provider name: 'openai', 'gemini' or 'anthropic'
    """
    model_lower = model_identifier.lower()

    if any(pattern in model_lower for pattern in ANTHROPIC_MODELS):
        return PROVIDER_ANTHROPIC

    if any(pattern in model_lower for pattern in GEMINI_MODELS):
        return PROVIDER_GEMINI

    # Default to OpenAI for gpt-, o1-, o3- and other models
    return PROVIDER_OPENAI
