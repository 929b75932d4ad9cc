"""
Unit tests for web search grounding and the expert advisor.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from models.base import BaseLLM, ModelError, ModelResponse
from models.search_agents import GroundingSource, format_search_context, perform_web_search
from pipeline.expert import FALLBACK_ANSWER, ExpertAdvisor

SOURCES = [
    GroundingSource(title="Egg shape and sex", uri="https://example.org/a", snippet="Rounder eggs..."),
    GroundingSource(title="Sexing methods", uri="https://example.org/b"),
]


def answering_llm(text="Egg shape is a weak predictor."):
    llm = MagicMock(spec=BaseLLM)
    llm.call.return_value = ModelResponse(content=text, model="gemini-2.5-flash")
    return llm


class TestPerformWebSearch:
    """Test the Serper client."""

    def test_requires_key(self):
        with pytest.raises(ValueError):
            perform_web_search("egg", serper_api_key="")

    def test_parses_organic_results(self):
        payload = {"organic": [
            {"title": "One", "link": "https://one", "snippet": "s1"},
            {"title": "No link"},
            {"title": "Two", "link": "https://two"},
            {"title": "Three", "link": "https://three"},
        ]}
        with patch('models.search_agents.requests.post') as mock_post:
            mock_post.return_value.json.return_value = payload

            sources = perform_web_search("egg shape", "key", top_k=3)

        assert [s.uri for s in sources] == ["https://one", "https://two"]
        assert sources[0].snippet == "s1"
        assert mock_post.call_args.kwargs['json'] == {"q": "egg shape"}
        assert mock_post.call_args.kwargs['headers']['X-API-KEY'] == "key"

    def test_http_error_propagates(self):
        with patch('models.search_agents.requests.post') as mock_post:
            mock_post.return_value.raise_for_status.side_effect = requests.HTTPError("403")

            with pytest.raises(requests.HTTPError):
                perform_web_search("egg", "key")

    def test_format_context(self):
        context = format_search_context(SOURCES)
        assert context.startswith("Search Results:")
        assert "2. Title: Sexing methods" in context
        assert format_search_context([]) == ""


class TestExpertAdvisor:
    """Test question answering."""

    def test_without_search_key(self):
        llm = answering_llm()

        with patch('pipeline.expert.perform_web_search') as mock_search:
            answer = ExpertAdvisor(llm).ask("  Does weight matter?  ")

        mock_search.assert_not_called()
        assert answer.text == "Egg shape is a weak predictor."
        assert answer.sources == []
        assert not answer.failed
        assert llm.call.call_args.kwargs['user_prompt'] == "Question: Does weight matter?"

    def test_grounded_answer(self):
        llm = answering_llm()

        with patch('pipeline.expert.perform_web_search', return_value=SOURCES):
            answer = ExpertAdvisor(llm, serper_api_key="key").ask("Does shape matter?")

        assert answer.sources == SOURCES
        assert "https://example.org/a" in llm.call.call_args.kwargs['user_prompt']

    def test_search_failure_falls_back(self):
        llm = answering_llm()

        with patch('pipeline.expert.perform_web_search', side_effect=requests.ConnectionError("offline")):
            answer = ExpertAdvisor(llm, serper_api_key="key").ask("Does shape matter?")

        assert answer.sources == []
        assert not answer.failed
        llm.call.assert_called_once()

    def test_model_failure_returns_apology(self):
        llm = answering_llm()
        llm.call.side_effect = ModelError("down")

        answer = ExpertAdvisor(llm).ask("Does shape matter?")

        assert answer.text == FALLBACK_ANSWER
        assert answer.failed
        assert answer.sources == []

    @pytest.mark.parametrize("query", ["", "   "])
    def test_empty_query(self, query):
        with pytest.raises(ValueError):
            ExpertAdvisor(answering_llm()).ask(query)
