from typing import Any, Protocol

from techtouch.data import Usage


class CompletionGateway(Protocol):
    """Interface for a one-shot completion call that returns one JSON document."""

    @property
    def usage(self) -> Usage:
        """Usage accumulated over every call made through this gateway."""
        ...

    async def complete(
        self,
        prompt_body: str,
        system_instruction: str,
        grounding_enabled: bool,
        usage: Usage | None = None,
    ) -> Any:
        """Send one request and return the parsed JSON payload.

        Args:
            prompt_body: Task request including the expected JSON shape.
            system_instruction: Role and accuracy constraints.
            grounding_enabled: Whether to allow live web search.
            usage: If given, this request's API call is also appended here.

        Returns:
            The parsed JSON value.

        Raises:
            ConfigurationError: No credential is available.
            UpstreamError: The backend call failed or returned no text.
            MalformedResponseError: The returned text is not valid JSON.
        """
        ...
