class StowageError(Exception):
    """Base class for every error raised by stowage."""


class ConfigurationError(StowageError):
    """A required setting is missing. Raised at first use, not at construction."""


class PathTraversalError(StowageError):
    """An object key would resolve outside its bucket root."""


class UnsupportedInputError(StowageError):
    """Upload body is neither raw bytes, base64 nor an absolute URL."""


class FetchError(StowageError):
    """Fetching remote content for an upload failed."""


class StorageError(StowageError):
    """A storage driver operation failed."""


class UploadError(StorageError):
    pass


class DeleteError(StorageError):
    pass


class SigningError(StorageError):
    pass


class RateLimitUnavailable(StowageError):
    """The rate-limit backend could not be reached or answered with an error."""
