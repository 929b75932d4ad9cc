"""
Expert question answering, optionally grounded on web search results.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from config import TOP_SEARCH_RESULTS
from models.base import BaseLLM, LLMError
from models.search_agents import GroundingSource, format_search_context, perform_web_search
from prompts.egg_prompts import EXPERT_SYSTEM_PROMPT, EXPERT_USER_PROMPT_TEMPLATE

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "Sorry, I encountered an error while searching for an answer. Please try again."


@dataclass
class GroundedAnswer:
    """An expert answer and the web pages it drew on."""
    text: str
    sources: List[GroundingSource] = field(default_factory=list)
    failed: bool = False


class ExpertAdvisor:
    """
    Answers free-form poultry science questions.

    When a Serper key is configured the question is searched first and the
    results are handed to the model as context; a failed search falls back
    to an ungrounded answer.

    Example:
        advisor = ExpertAdvisor(create_llm('gemini-2.5-flash', api_keys),
                                serper_api_key=os.getenv('SERPER_API_KEY'))
        answer = advisor.ask("Does egg weight predict chick sex?")
        print(answer.text)
        for source in answer.sources:
            print(source.title, source.uri)
    """

    def __init__(
        self,
        llm: BaseLLM,
        serper_api_key: Optional[str] = None,
        top_k: int = TOP_SEARCH_RESULTS
    ):
        self.llm = llm
        self.serper_api_key = serper_api_key
        self.top_k = top_k

    def ask(self, query: str) -> GroundedAnswer:
        """
        Answer a question.

        Args:
            query: The user's question

        Returns:
            GroundedAnswer; on model failure the text is a fixed apology,
            ``failed`` is set and there are no sources

        Raises:
            ValueError: If the query is empty
        """
        if not query or not query.strip():
            raise ValueError("Query must not be empty")
        query = query.strip()

        sources = self._search(query)
        user_prompt = EXPERT_USER_PROMPT_TEMPLATE.format(
            query=query,
            context=format_search_context(sources)
        ).strip()

        try:
            response = self.llm.call(system_prompt=EXPERT_SYSTEM_PROMPT, user_prompt=user_prompt)
        except LLMError as e:
            logger.error(f"Expert answer failed: {e}")
            return GroundedAnswer(text=FALLBACK_ANSWER, failed=True)

        return GroundedAnswer(text=response.content, sources=sources)

    def _search(self, query: str) -> List[GroundingSource]:
        if not self.serper_api_key:
            return []
        try:
            return perform_web_search(query, self.serper_api_key, top_k=self.top_k)
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Web search failed, answering without sources: {e}")
            return []
