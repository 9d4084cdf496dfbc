"""Error taxonomy for the fetch pipeline."""


class FetchError(Exception):
    """Base class for every failure the orchestrator converts into view state."""


class ConfigurationError(FetchError):
    """No backend credential is available."""


class UpstreamError(FetchError):
    """The backend call raised or returned no text."""


class MalformedResponseError(FetchError):
    """The backend returned text that is not valid JSON."""


class SchemaViolationError(FetchError):
    """A payload could not be coerced into the minimum shape for its kind.

    Args:
        kind: Record kind being normalized.
        field: Name of the field that failed.
        message: Human-readable detail.
    """

    def __init__(self, kind: str, field: str, message: str) -> None:
        super().__init__(f"{kind}.{field}: {message}")
        self.kind = kind
        self.field = field
