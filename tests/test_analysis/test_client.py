"""Tests for the analysis service clients."""

import json
from datetime import datetime
from unittest.mock import MagicMock

import httpx
import pytest

from task_analyzer.activity.models import ActivityEvent
from task_analyzer.analysis.client import (
    AnalysisClient,
    AnthropicAnalysisClient,
    parse_analysis_payload,
)
from task_analyzer.analysis.models import ActivitySummary, Level
from task_analyzer.exceptions import ConfigurationError, NoDataError, ServiceError

PAYLOAD = {
    "automatable_tasks": [
        {
            "task": "Copy invoice totals into a spreadsheet",
            "frequency": "high",
            "automation_method": "Scrape the invoice page and append rows",
            "time_saving": 20,
            "priority": "high",
        }
    ],
    "product_ideas": [
        {"name": "InvoiceSync", "description": "Syncs invoices", "target_tasks": ["invoices"]}
    ],
    "summary": "Mostly bookkeeping.",
}


@pytest.fixture
def summary():
    event = ActivityEvent(
        kind="page_visit",
        timestamp=datetime(2024, 3, 5, 10, 0).astimezone(),
        url="https://billing.example.com/invoices",
    )
    return ActivitySummary(
        total_count=1,
        top_sites=[("billing.example.com", 1)],
        action_counts={"page_visit": 1},
        sample_events=[event],
    )


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client(handler, calls=None):
    def recording(request):
        if calls is not None:
            calls.append(request)
        return handler(request)

    return AnalysisClient(
        model="test-model",
        base_url="https://llm.test/v1/",
        transport=httpx.MockTransport(recording),
    )


# ---- Preconditions ----

@pytest.mark.parametrize("key", ["", "   "])
def test_missing_key_raises_before_any_request(summary, key):
    calls = []
    client = _client(lambda r: httpx.Response(200, json=_completion(json.dumps(PAYLOAD))), calls)
    with pytest.raises(ConfigurationError, match="API key"):
        client.analyze(summary, key)
    assert calls == []


def test_missing_key_checked_before_empty_log():
    calls = []
    client = _client(lambda r: httpx.Response(200), calls)
    with pytest.raises(ConfigurationError):
        client.analyze(ActivitySummary(total_count=0), "")
    assert calls == []


def test_empty_log_raises_no_data():
    calls = []
    client = _client(lambda r: httpx.Response(200), calls)
    with pytest.raises(NoDataError):
        client.analyze(ActivitySummary(total_count=0), "sk-test")
    assert calls == []


# ---- Success path ----

def test_analyze_success(summary):
    calls = []
    client = _client(lambda r: httpx.Response(200, json=_completion(json.dumps(PAYLOAD))), calls)

    result = client.analyze(summary, " sk-test ")

    assert len(calls) == 1
    request = calls[0]
    assert str(request.url) == "https://llm.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"

    body = json.loads(request.content)
    assert body["model"] == "test-model"
    assert body["response_format"] == {"type": "json_object"}
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert "billing.example.com: 1 visits" in body["messages"][1]["content"]

    task = result.automatable_tasks[0]
    assert task.priority is Level.HIGH
    assert task.time_saving_minutes_per_day == 20
    assert result.product_ideas[0].name == "InvoiceSync"
    assert result.summary_text == "Mostly bookkeeping."


# ---- Failures ----

def test_error_status_uses_service_message(summary):
    client = _client(lambda r: httpx.Response(401, json={"error": {"message": "Incorrect API key"}}))
    with pytest.raises(ServiceError, match="Incorrect API key"):
        client.analyze(summary, "sk-bad")


def test_error_status_without_body(summary):
    client = _client(lambda r: httpx.Response(503, text="upstream down"))
    with pytest.raises(ServiceError, match="HTTP 503"):
        client.analyze(summary, "sk-test")


@pytest.mark.parametrize("body", [
    {},
    {"choices": []},
    {"choices": [{"message": {}}]},
    {"choices": [{"message": {"content": None}}]},
])
def test_malformed_envelope(summary, body):
    client = _client(lambda r: httpx.Response(200, json=body))
    with pytest.raises(ServiceError, match="Malformed"):
        client.analyze(summary, "sk-test")


def test_non_json_body(summary):
    client = _client(lambda r: httpx.Response(200, text="<html>"))
    with pytest.raises(ServiceError, match="Malformed"):
        client.analyze(summary, "sk-test")


def test_content_not_json(summary):
    client = _client(lambda r: httpx.Response(200, json=_completion("Here are some ideas...")))
    with pytest.raises(ServiceError, match="Unparsable"):
        client.analyze(summary, "sk-test")


def test_content_with_unknown_priority(summary):
    bad = json.loads(json.dumps(PAYLOAD))
    bad["automatable_tasks"][0]["priority"] = "critical"
    client = _client(lambda r: httpx.Response(200, json=_completion(json.dumps(bad))))
    with pytest.raises(ServiceError, match="priority"):
        client.analyze(summary, "sk-test")


def test_timeout(summary):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ServiceError, match="timed out"):
        _client(handler).analyze(summary, "sk-test")


def test_connection_error(summary):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ServiceError, match="failed"):
        _client(handler).analyze(summary, "sk-test")


def test_parse_analysis_payload_rejects_non_object():
    with pytest.raises(ServiceError):
        parse_analysis_payload("[1, 2]")


# ---- Anthropic backend ----

def _anthropic_client(response=None, error=None):
    sdk = MagicMock()
    if error is not None:
        sdk.messages.create.side_effect = error
    else:
        sdk.messages.create.return_value = response
    factory = MagicMock(return_value=sdk)
    return AnthropicAnalysisClient(model="claude-test", sdk_factory=factory), factory, sdk


def _anthropic_response(text):
    block = MagicMock()
    block.text = text
    response = MagicMock()
    response.content = [block]
    return response


def test_anthropic_success_strips_code_fence(summary):
    fenced = "```json\n" + json.dumps(PAYLOAD) + "\n```"
    client, factory, sdk = _anthropic_client(_anthropic_response(fenced))

    result = client.analyze(summary, "sk-ant")

    factory.assert_called_once_with("sk-ant")
    kwargs = sdk.messages.create.call_args.kwargs
    assert kwargs["model"] == "claude-test"
    assert kwargs["messages"][0]["role"] == "user"
    assert result.automatable_tasks[0].task == "Copy invoice totals into a spreadsheet"


def test_anthropic_missing_key_skips_sdk(summary):
    client, factory, _ = _anthropic_client(_anthropic_response("{}"))
    with pytest.raises(ConfigurationError):
        client.analyze(summary, "")
    factory.assert_not_called()


def test_anthropic_status_error(summary):
    import anthropic

    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    error = anthropic.APIStatusError(
        "overloaded",
        response=httpx.Response(529, request=request),
        body=None,
    )
    client, _, _ = _anthropic_client(error=error)
    with pytest.raises(ServiceError, match="overloaded"):
        client.analyze(summary, "sk-ant")


def test_anthropic_timeout(summary):
    import anthropic

    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    client, _, _ = _anthropic_client(error=anthropic.APITimeoutError(request=request))
    with pytest.raises(ServiceError, match="timed out"):
        client.analyze(summary, "sk-ant")


def test_anthropic_empty_content(summary):
    response = MagicMock()
    response.content = []
    client, _, _ = _anthropic_client(response)
    with pytest.raises(ServiceError, match="Malformed"):
        client.analyze(summary, "sk-ant")
