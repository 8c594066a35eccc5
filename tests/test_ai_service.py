import json
import os
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from munga.ai import AIService, NO_RESPONSE_TEXT
from munga.ai import prompts
from munga.utils.config import AISettings
from munga.utils.exceptions import AIServiceError

from conftest import chat_response, citation


def make_service(client=None):
    return AIService(AISettings(api_key="test-key"), client=client or MagicMock())


def test_client_created_from_api_key():
    with patch("munga.ai.service.OpenAI") as openai_cls:
        service = AIService(AISettings(api_key="sk-test"))

    openai_cls.assert_called_once_with(api_key="sk-test")
    assert service.is_available()


def test_unconfigured_service():
    with patch.dict(os.environ, {"OPENAI_API_KEY": ""}):
        service = AIService(AISettings(api_key=None))

    assert not service.is_available()
    with pytest.raises(AIServiceError):
        service.perform_research("any query")
    assert service.generate_strategic_image("any prompt") == ""
    assert service.predict_outcomes("stats") is None
    assert service.generate_roadmap("objective") is None


def test_research_returns_text_and_cited_sources():
    client = MagicMock()
    client.chat.completions.create.return_value = chat_response(
        "Tactical Summary: markets are shifting.",
        annotations=[
            citation("Reuters", "https://reuters.example/a"),
            SimpleNamespace(type="file_citation"),
            citation(None, None),
        ],
    )
    service = make_service(client)

    result = service.perform_research("state of lithium markets", "system brief")

    assert result.text == "Tactical Summary: markets are shifting."
    assert [(s.title, s.uri) for s in result.sources] == [
        ("Reuters", "https://reuters.example/a"),
        ("Source", "#"),
    ]
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["messages"][0] == {"role": "system", "content": "system brief"}
    assert kwargs["messages"][1]["content"] == "state of lithium markets"
    assert "web_search_options" in kwargs


def test_research_empty_reply_uses_placeholder():
    client = MagicMock()
    client.chat.completions.create.return_value = chat_response(None)

    result = make_service(client).perform_research("query")

    assert result.text == NO_RESPONSE_TEXT
    assert result.sources == []


def test_research_failure_raises():
    client = MagicMock()
    client.chat.completions.create.side_effect = RuntimeError("connection reset")

    with pytest.raises(AIServiceError) as exc_info:
        make_service(client).perform_research("query")
    assert exc_info.value.operation == "research"


def test_image_returns_data_url():
    client = MagicMock()
    client.images.generate.return_value = SimpleNamespace(data=[SimpleNamespace(b64_json="aGVsbG8=", url=None)])

    url = make_service(client).generate_strategic_image("orbital logistics")

    assert url == "data:image/png;base64,aGVsbG8="
    assert client.images.generate.call_args.kwargs["prompt"] == prompts.image_prompt("orbital logistics")


def test_image_failure_returns_empty():
    client = MagicMock()
    client.images.generate.side_effect = RuntimeError("quota")

    assert make_service(client).generate_strategic_image("anything") == ""


def test_predict_outcomes_parses_structured_payload():
    payload = {
        "recap": "Stable growth",
        "predictions": ["Q3 upswing", {"scenario": "Price war", "likelihood": "low", "reasoning": "thin margins"}],
        "viabilityRating": 140,
        "recommendations": ["Hedge supply"],
    }
    client = MagicMock()
    client.chat.completions.create.return_value = chat_response(json.dumps(payload))

    report = make_service(client).predict_outcomes("revenue +12%")

    assert report.recap == "Stable growth"
    assert report.viability_rating == 100.0
    assert report.predictions == ["Q3 upswing", "Price war (low): thin margins"]
    response_format = client.chat.completions.create.call_args.kwargs["response_format"]
    assert response_format["json_schema"]["strict"] is True
    assert response_format["json_schema"]["schema"] == prompts.PREDICTION_SCHEMA


@pytest.mark.parametrize("content", ["not json", "[]", "{}", None])
def test_predict_outcomes_unparseable_payload_is_none(content):
    client = MagicMock()
    client.chat.completions.create.return_value = chat_response(content)

    assert make_service(client).predict_outcomes("stats") is None


def test_predict_outcomes_failure_is_none():
    client = MagicMock()
    client.chat.completions.create.side_effect = RuntimeError("timeout")

    assert make_service(client).predict_outcomes("stats") is None


def test_generate_roadmap():
    payload = {
        "title": "Market Entry",
        "phases": [
            {"name": "Recon", "tasks": ["Map competitors"], "duration": "2 weeks"},
            "not a phase",
        ],
        "riskAssessment": "Moderate",
    }
    client = MagicMock()
    client.chat.completions.create.return_value = chat_response(json.dumps(payload))
    service = make_service(client)

    roadmap = service.generate_roadmap("enter the EU market")

    assert roadmap.title == "Market Entry"
    assert [p.name for p in roadmap.phases] == ["Recon"]
    assert roadmap.phases[0].tasks == ["Map competitors"]
    assert roadmap.risk_assessment == "Moderate"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == service.settings.fast_model
    assert kwargs["response_format"]["json_schema"]["strict"] is False
