"""Claude completion gateway with optional web search grounding."""

import json
import logging
import os
from typing import Any

import anthropic

from techtouch.data import APICallUsage, Usage
from techtouch.errors import ConfigurationError, MalformedResponseError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-haiku-4-5-20251001"


def resolve_api_key(api_key: str | None = None) -> str | None:
    """Explicit key first, then CLAUDE_API_KEY, then ANTHROPIC_API_KEY."""
    return api_key or os.environ.get("CLAUDE_API_KEY") or os.environ.get("ANTHROPIC_API_KEY")


def _strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = [line for line in cleaned.split("\n") if not line.strip().startswith("```")]
        cleaned = "\n".join(lines).strip()
    return cleaned


def parse_json_text(text: str) -> Any:
    """Parse the JSON document in a model reply.

    Code fences are stripped; if the reply still carries prose around the
    document, the outermost ``{...}`` span is parsed instead.

    Raises:
        MalformedResponseError: No valid JSON document could be found.
    """
    cleaned = _strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise MalformedResponseError(f"Response is not JSON: {e}") from e
        try:
            return json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as inner:
            raise MalformedResponseError(f"Response is not JSON: {inner}") from inner


def _response_text(response: Any) -> str:
    """Join the text blocks that follow the last web search result."""
    blocks = list(response.content or [])
    last_search = -1
    for i, block in enumerate(blocks):
        if block.type == "web_search_tool_result":
            last_search = i
    parts = [block.text for block in blocks[last_search + 1 :] if block.type == "text"]
    return "".join(parts)


class ClaudeGateway:
    """Send single completion requests to Claude and return parsed JSON.

    When grounding is enabled, Anthropic's server-side web search tool is
    attached to the request so answers can cite current pages.

    Args:
        api_key: Anthropic API key (defaults to CLAUDE_API_KEY, then
            ANTHROPIC_API_KEY env vars).
        model: Model to use (default: claude-haiku-4-5-20251001).
        max_tokens: Response token limit.
        temperature: Sampling temperature; kept low for factual output.
        max_searches: Max web searches per grounded request.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4096,
        temperature: float = 0.1,
        max_searches: int = 3,
    ) -> None:
        resolved_key = resolve_api_key(api_key)
        self._client = anthropic.AsyncAnthropic(api_key=resolved_key) if resolved_key else None
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._max_searches = max_searches
        self._usage = Usage()

    @property
    def model(self) -> str:
        return self._model

    @property
    def usage(self) -> Usage:
        return self._usage

    async def complete(
        self,
        prompt_body: str,
        system_instruction: str,
        grounding_enabled: bool,
        usage: Usage | None = None,
    ) -> Any:
        if self._client is None:
            raise ConfigurationError("No Anthropic API key configured")

        request: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "system": system_instruction,
            "messages": [{"role": "user", "content": prompt_body}],
        }
        if grounding_enabled:
            request["tools"] = [
                {
                    "type": "web_search_20250305",
                    "name": "web_search",
                    "max_uses": self._max_searches,
                }
            ]

        try:
            response = await self._client.messages.create(**request)
        except anthropic.AnthropicError as e:
            raise UpstreamError(f"Backend request failed: {e}") from e

        call_usage = self._record_usage(response)
        if call_usage is not None and usage is not None:
            usage.api_calls.append(call_usage)

        text = _response_text(response)
        if not text.strip():
            raise UpstreamError("Backend returned no text")
        return parse_json_text(text)

    def _record_usage(self, response: Any) -> APICallUsage | None:
        usage = getattr(response, "usage", None)
        if usage is None:
            return None

        web_searches = 0
        server_tool_use = getattr(usage, "server_tool_use", None)
        if server_tool_use is not None:
            web_searches = getattr(server_tool_use, "web_search_requests", 0) or 0

        call_usage = APICallUsage(
            model=self._model,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            cache_creation_input_tokens=getattr(usage, "cache_creation_input_tokens", 0) or 0,
            cache_read_input_tokens=getattr(usage, "cache_read_input_tokens", 0) or 0,
            web_searches=web_searches,
        )
        self._usage.api_calls.append(call_usage)
        return call_usage
