"""
LLM model implementations and interfaces.

This package contains:
- base: BaseLLM abstract class, ModelResponse and ImagePart dataclasses
- llm_clients: Concrete LLM implementations (Gemini, OpenAI, Claude)
- search_agents: Web search used to ground expert answers
"""

__version__ = '1.0.0'
