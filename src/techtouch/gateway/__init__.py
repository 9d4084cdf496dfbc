"""AI request gateways."""

from techtouch.gateway.base import CompletionGateway
from techtouch.gateway.claude import ClaudeGateway, parse_json_text, resolve_api_key

__all__ = [
    "ClaudeGateway",
    "CompletionGateway",
    "parse_json_text",
    "resolve_api_key",
]
