"""Exception hierarchy shared by the Pulse collaborators."""


class PulseError(Exception):
    """Base class for expected failures of external collaborators."""


class NewsAPIError(PulseError):
    """NewsAPI is misconfigured or answered with an error payload."""


class SummaryGenerationError(PulseError):
    """The language model returned missing or malformed output."""


class NoModelAvailableError(PulseError):
    """None of the configured chat models can be used with the current key."""
