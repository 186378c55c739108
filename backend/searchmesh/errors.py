"""Error taxonomy shared by the search backends, the retry layer and the assistant."""


class SearchMeshError(Exception):
    """Base class for every error raised by searchmesh."""


class BackendError(SearchMeshError):
    """A search backend call failed."""

    def __init__(self, backend: str, message: str):
        self.backend = backend
        self.message = message
        super().__init__(f"{backend}: {message}")


class NetworkError(BackendError):
    """Transport-level failure (connection, timeout, non-2xx status)."""


class RateLimitError(BackendError):
    """The provider rejected the call with HTTP 429 or an equivalent signal."""


class InvalidRequestError(BackendError):
    """The provider refused the request itself (bad credentials, bad parameters). Never retried."""


# Errors RetryingClient retries. Anything else propagates on the first failure.
TRANSIENT_ERRORS = (NetworkError, RateLimitError)


class ExhaustedRetriesError(BackendError):
    """Raised after the initial attempt plus every retry failed."""

    def __init__(self, backend: str, cause: Exception, attempts: int):
        self.cause = cause
        self.attempts = attempts
        message = cause.message if isinstance(cause, BackendError) else str(cause)
        super().__init__(backend, message)


class ScrapeError(SearchMeshError):
    """Content extraction failed for one URL. Never retried."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(f"Failed to scrape {url}: {message}")


class GenerationError(SearchMeshError):
    """The generation collaborator failed to produce an answer."""


class EmptyGenerationError(GenerationError):
    """The generation collaborator returned blank text."""
