"""
tig-gh exceptions
"""


class TigGhError(Exception):
    """Base exception for all tig-gh errors"""

    pass


class ConfigError(TigGhError):
    """Raised when a configuration file cannot be parsed"""

    pass


class RemoteFetchError(TigGhError):
    """Raised when a request to the remote API fails"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RemoteFetchError):
    """Raised when resource is not found (404)"""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class AuthenticationError(RemoteFetchError):
    """Raised when authentication fails (401)"""

    def __init__(self, message: str):
        super().__init__(message, status_code=401)


class RateLimitError(RemoteFetchError):
    """Raised when the API rate limit is exhausted (403 with no remaining quota)"""

    def __init__(self, message: str):
        super().__init__(message, status_code=403)


class MetricsDisabledError(TigGhError):
    """Raised when metrics are requested but disabled in config"""

    pass


class NoRepositoriesError(TigGhError):
    """Raised when no repositories are configured for metrics"""

    pass


class PipelineEntryError(TigGhError):
    """A single dependent fetch failed; isolated to its queue entry"""

    def __init__(self, index: int, cause: BaseException):
        super().__init__(f"entry {index}: {cause}")
        self.index = index
        self.cause = cause
