"""
Abstract base class for prompt builders.

This module defines the interface for prompt builders that turn one
analysis input into the system/user prompt pair sent to an LLM.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict

from prompts.egg_prompts import SYSTEM_PROMPT


@dataclass
class PromptOutput:
    """
    Output structure from prompt builders.

    Attributes:
        system_prompt: The system prompt/instruction
        user_prompt: The user message/query
        metadata: Additional metadata about the prompt
    """
    system_prompt: str
    user_prompt: str
    metadata: Dict = field(default_factory=dict)


class BasePromptBuilder(ABC):
    """
    Abstract base class for prompt builders.

    Example:
        builder = MeasurementPromptBuilder()
        prompt = builder.build(long_axis_mm=57.1, short_axis_mm=42.4, weight_g=61.0)
        response = llm.call(prompt.system_prompt, prompt.user_prompt)
    """

    def __init__(self, system_prompt: str = SYSTEM_PROMPT):
        self.system_prompt = system_prompt

    @abstractmethod
    def build(self, **kwargs) -> PromptOutput:
        """
        Build the prompt for one input.

        Returns:
            PromptOutput for a single LLM call
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
