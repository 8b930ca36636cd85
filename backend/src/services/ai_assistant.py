"""AI study assistant: flashcards, summaries and keyword suggestions via an LLM gateway."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import status

from ..models.ai import AIAction, GeneratedFlashcard, SuggestedKeyword
from .config import AppConfig, get_config

logger = logging.getLogger(__name__)

DEFAULT_CARD_COUNT = 5


class AIAssistantError(Exception):
    """Base error; ``message`` is safe to show to the user."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "ai_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AIConfigurationError(AIAssistantError):
    error = "ai_not_configured"


class AIValidationError(AIAssistantError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "invalid_request"


class AIRateLimitError(AIAssistantError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error = "rate_limited"


class AICreditsError(AIAssistantError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    error = "insufficient_credits"


class AIUpstreamError(AIAssistantError):
    error = "ai_upstream_error"


def _flashcards_tool() -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": "create_flashcards",
            "description": "Create flashcards from the provided text",
            "parameters": {
                "type": "object",
                "properties": {
                    "flashcards": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "front": {"type": "string", "description": "The question or prompt"},
                                "back": {"type": "string", "description": "The answer or explanation"},
                            },
                            "required": ["front", "back"],
                        },
                    }
                },
                "required": ["flashcards"],
            },
        },
    }


def _summary_tool() -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": "create_summary",
            "description": "Create a summary of the notes",
            "parameters": {
                "type": "object",
                "properties": {
                    "summary": {"type": "string", "description": "The summarized content"}
                },
                "required": ["summary"],
            },
        },
    }


def _keywords_tool() -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": "extract_keywords",
            "description": "Extract keywords from the text",
            "parameters": {
                "type": "object",
                "properties": {
                    "keywords": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "text": {"type": "string", "description": "The keyword or key phrase"},
                                "definition": {
                                    "type": "string",
                                    "description": "Brief definition or explanation",
                                },
                            },
                            "required": ["text", "definition"],
                        },
                    }
                },
                "required": ["keywords"],
            },
        },
    }


def build_system_prompt(action: AIAction, language: str, count: int) -> str:
    if action is AIAction.GENERATE_FLASHCARDS:
        return (
            "You are an educational assistant that writes study flashcards.\n"
            'Read the text and write flashcards with a question on the "front" '
            'and the answer on the "back".\n'
            "Questions must test the important concepts of the text.\n"
            "Answers must be concise but complete.\n"
            f"Create exactly {count} flashcards. Write them in {language}."
        )
    if action is AIAction.SUMMARIZE_NOTES:
        return (
            "You are an educational assistant that summarizes study notes.\n"
            "Write a clear, concise summary of the text that captures the main points "
            "and key concepts. Use bullet points where appropriate.\n"
            f"Write the summary in {language}."
        )
    return (
        "You are an educational assistant that identifies keywords and important concepts.\n"
        "Extract the most important keywords from the text and give each a brief definition.\n"
        f"Return between 5 and 10 keywords, written in {language}."
    )


TOOLS = {
    AIAction.GENERATE_FLASHCARDS: _flashcards_tool,
    AIAction.SUMMARIZE_NOTES: _summary_tool,
    AIAction.SUGGEST_KEYWORDS: _keywords_tool,
}


class AIStudyAssistant:
    """Thin client for the chat-completions gateway with forced tool calls."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 60.0,
    ):
        self.config = config or get_config()
        self._transport = transport
        self._timeout = timeout

    def build_request(self, action: AIAction, text: str, count: int) -> Dict[str, Any]:
        tool = TOOLS[action]()
        return {
            "model": self.config.ai_model,
            "messages": [
                {
                    "role": "system",
                    "content": build_system_prompt(
                        action, self.config.ai_response_language, count
                    ),
                },
                {"role": "user", "content": text},
            ],
            "tools": [tool],
            "tool_choice": {"type": "function", "function": {"name": tool["function"]["name"]}},
        }

    async def invoke(
        self, action: str, text: str, count: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Run one assistant action and return the tool-call arguments.

        Raises:
            AIConfigurationError: no gateway credential configured
            AIValidationError: empty text or unknown action
            AIRateLimitError / AICreditsError: gateway 429 / 402
            AIUpstreamError: any other gateway failure or a reply without a tool call
        """
        api_key = self.config.ai_gateway_api_key
        if not api_key:
            logger.error("AI_GATEWAY_API_KEY is not configured")
            raise AIConfigurationError("AI processing failed")
        if not text or not text.strip():
            raise AIValidationError("Text is required")
        try:
            parsed_action = AIAction(action)
        except ValueError:
            raise AIValidationError("Invalid action") from None

        payload = self.build_request(parsed_action, text, count or DEFAULT_CARD_COUNT)
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.config.ai_gateway_url, headers=headers, json=payload
                )
        except httpx.HTTPError as exc:
            logger.error(f"AI gateway request failed: {exc}")
            raise AIUpstreamError("AI processing failed") from exc

        if response.status_code == status.HTTP_429_TOO_MANY_REQUESTS:
            raise AIRateLimitError("Rate limit exceeded. Please try again later.")
        if response.status_code == status.HTTP_402_PAYMENT_REQUIRED:
            raise AICreditsError("Insufficient credits. Add credits to continue.")
        if response.is_error:
            logger.error(f"AI gateway error: {response.status_code} {response.text[:500]}")
            raise AIUpstreamError("AI processing failed")

        try:
            data = response.json()
            tool_calls = data["choices"][0]["message"].get("tool_calls") or []
            arguments = tool_calls[0]["function"]["arguments"]
            result = json.loads(arguments) if isinstance(arguments, str) else arguments
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error(f"Invalid AI response: {exc}")
            raise AIUpstreamError("Invalid AI response") from exc
        if not isinstance(result, dict):
            raise AIUpstreamError("Invalid AI response")

        logger.info(f"AI action {parsed_action.value} completed")
        return result

    async def generate_flashcards(
        self, text: str, count: int = DEFAULT_CARD_COUNT
    ) -> List[GeneratedFlashcard]:
        result = await self.invoke(AIAction.GENERATE_FLASHCARDS.value, text, count)
        return [
            GeneratedFlashcard(front=str(item["front"]), back=str(item["back"]))
            for item in _items(result, "flashcards")
            if item.get("front") and item.get("back")
        ]

    async def summarize_notes(self, text: str) -> str:
        result = await self.invoke(AIAction.SUMMARIZE_NOTES.value, text)
        summary = result.get("summary", "")
        if not isinstance(summary, str):
            raise AIUpstreamError("Invalid AI response")
        return summary

    async def suggest_keywords(self, text: str) -> List[SuggestedKeyword]:
        result = await self.invoke(AIAction.SUGGEST_KEYWORDS.value, text)
        return [
            SuggestedKeyword(text=str(item["text"]), definition=str(item.get("definition") or ""))
            for item in _items(result, "keywords")
            if item.get("text")
        ]


def _items(result: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """The list under ``key`` of a tool reply; every element must be an object."""
    items = result.get(key, [])
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        logger.error(f"Invalid AI response: '{key}' is not a list of objects")
        raise AIUpstreamError("Invalid AI response")
    return items


_assistant: Optional[AIStudyAssistant] = None


def get_ai_assistant() -> AIStudyAssistant:
    """Get or create the assistant singleton."""
    global _assistant
    if _assistant is None:
        _assistant = AIStudyAssistant()
    return _assistant


__all__ = [
    "AIAssistantError",
    "AIConfigurationError",
    "AICreditsError",
    "AIRateLimitError",
    "AIStudyAssistant",
    "AIUpstreamError",
    "AIValidationError",
    "get_ai_assistant",
]
