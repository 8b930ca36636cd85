import json

import httpx
import pytest

from backend.src.services.ai_assistant import (
    AIConfigurationError,
    AICreditsError,
    AIRateLimitError,
    AIStudyAssistant,
    AIUpstreamError,
    AIValidationError,
)
from backend.src.services.config import AppConfig


def tool_reply(name: str, arguments: dict) -> dict:
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "tool_calls": [
                        {
                            "id": "call_1",
                            "type": "function",
                            "function": {"name": name, "arguments": json.dumps(arguments)},
                        }
                    ],
                }
            }
        ]
    }


def make_assistant(handler, **overrides) -> AIStudyAssistant:
    config = AppConfig(ai_gateway_api_key="test-key", **overrides)
    return AIStudyAssistant(config=config, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_generate_flashcards_forces_the_tool_and_parses_cards() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json=tool_reply(
                "create_flashcards",
                {
                    "flashcards": [
                        {"front": "What is the femur?", "back": "The thigh bone"},
                        {"front": "Incomplete", "back": ""},
                    ]
                },
            ),
        )

    assistant = make_assistant(handler, ai_model="test-model")
    cards = await assistant.generate_flashcards("The femur is the thigh bone.", count=3)

    assert [(card.front, card.back) for card in cards] == [("What is the femur?", "The thigh bone")]
    body = seen["body"]
    assert seen["auth"] == "Bearer test-key"
    assert body["model"] == "test-model"
    assert body["tool_choice"] == {"type": "function", "function": {"name": "create_flashcards"}}
    assert body["tools"][0]["function"]["name"] == "create_flashcards"
    system_prompt = body["messages"][0]["content"]
    assert "Create exactly 3 flashcards" in system_prompt
    assert "Portuguese" in system_prompt
    assert body["messages"][1] == {"role": "user", "content": "The femur is the thigh bone."}


@pytest.mark.asyncio
async def test_summarize_and_keywords_unwrap_tool_arguments() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        tool = json.loads(request.content)["tool_choice"]["function"]["name"]
        if tool == "create_summary":
            return httpx.Response(200, json=tool_reply(tool, {"summary": "- bones"}))
        return httpx.Response(
            200,
            json=tool_reply(tool, {"keywords": [{"text": "Femur", "definition": "Thigh bone"}]}),
        )

    assistant = make_assistant(handler, ai_response_language="English")

    assert await assistant.summarize_notes("notes") == "- bones"
    keywords = await assistant.suggest_keywords("notes")
    assert [(kw.text, kw.definition) for kw in keywords] == [("Femur", "Thigh bone")]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, error_type, message",
    [
        (429, AIRateLimitError, "Rate limit exceeded. Please try again later."),
        (402, AICreditsError, "Insufficient credits. Add credits to continue."),
        (500, AIUpstreamError, "AI processing failed"),
        (503, AIUpstreamError, "AI processing failed"),
    ],
)
async def test_gateway_errors_are_mapped(status_code, error_type, message) -> None:
    assistant = make_assistant(lambda request: httpx.Response(status_code, text="nope"))

    with pytest.raises(error_type) as excinfo:
        await assistant.invoke("summarize-notes", "some notes")

    assert excinfo.value.message == message
    assert excinfo.value.status_code == (status_code if status_code in (402, 429) else 500)


@pytest.mark.asyncio
async def test_reply_without_tool_call_is_invalid() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": [{"message": {"content": "Sure!"}}]})

    with pytest.raises(AIUpstreamError, match="Invalid AI response"):
        await make_assistant(handler).invoke("suggest-keywords", "text")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, name, arguments",
    [
        ("generate_flashcards", "generate_flashcards", {"flashcards": ["front/back"]}),
        ("generate_flashcards", "generate_flashcards", {"flashcards": {"front": "Q"}}),
        ("suggest_keywords", "suggest_keywords", {"keywords": "bones, femur"}),
        ("summarize_notes", "summarize_notes", {"summary": ["- bones"]}),
    ],
)
async def test_malformed_tool_arguments_are_invalid(method, name, arguments) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=tool_reply(name, arguments))

    assistant = make_assistant(handler)

    with pytest.raises(AIUpstreamError, match="Invalid AI response"):
        await getattr(assistant, method)("notes")


@pytest.mark.asyncio
async def test_transport_failure_is_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AIUpstreamError, match="AI processing failed"):
        await make_assistant(handler).invoke("summarize-notes", "text")


@pytest.mark.asyncio
async def test_missing_key_is_checked_first() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("gateway must not be called")

    assistant = AIStudyAssistant(config=AppConfig(), transport=httpx.MockTransport(handler))

    with pytest.raises(AIConfigurationError) as excinfo:
        await assistant.invoke("bogus", "")

    assert excinfo.value.status_code == 500
    assert excinfo.value.message == "AI processing failed"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action, text, message",
    [
        ("summarize-notes", "", "Text is required"),
        ("summarize-notes", "   ", "Text is required"),
        ("translate", "some text", "Invalid action"),
    ],
)
async def test_request_validation(action, text, message) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("gateway must not be called")

    with pytest.raises(AIValidationError) as excinfo:
        await make_assistant(handler).invoke(action, text)

    assert excinfo.value.message == message
    assert excinfo.value.status_code == 400
