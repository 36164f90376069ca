"""
Domain errors raised by the store, upload and catalog layers.

Each one carries the values a caller needs to report it (path, field
errors, offending key). runtime/api/server.py turns them into HTTP
status codes: validation and upload problems become 400, missing
records 404, rejected credentials 401, throttled logins 429 and failed
saves 500.
"""


class StoreWriteError(Exception):
    """
    Raised when the store document could not be written to disk.

    The on-disk document has been restored from its backup (when one
    existed) before this is raised; the in-memory document is unchanged.
    """

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to save store document {path}: {reason}")


class ValidationFailed(Exception):
    """
    Raised when input fails validation. Nothing has been mutated.

    The exception carries the list of field-level messages in `errors`.
    """

    def __init__(self, errors, message="Invalid data"):
        self.errors = list(errors)
        self.message = message
        super().__init__(f"{message}: " + "; ".join(self.errors))


class CategoryInUseError(ValidationFailed):
    """
    Raised when deleting a category that products still reference.

    `count` is the number of blocking products.
    """

    def __init__(self, category, count):
        self.category = category
        self.count = count
        super().__init__(
            [f"category '{category}' is used by {count} product(s)"],
            message="Category cannot be deleted while products use it",
        )


class NotFoundError(Exception):
    """Raised when a record (product, category, upload) does not exist."""

    def __init__(self, kind, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class AuthenticationError(Exception):
    """
    Raised when a request carries no valid session or bad credentials.

    Callers should answer with a re-authentication flow rather than a
    generic error.
    """

    def __init__(self, reason="Unauthorized"):
        self.reason = reason
        super().__init__(reason)


class RateLimitExceeded(Exception):
    """Raised when a client exceeds the login attempt budget."""

    def __init__(self, key, retry_after):
        self.key = key
        self.retry_after = retry_after
        super().__init__(
            f"Too many attempts for {key}; retry in {int(retry_after)}s"
        )


class InvalidUploadError(Exception):
    """Raised when an uploaded file is not an accepted image."""

    def __init__(self, reason):
        self.reason = reason
        super().__init__(f"Invalid upload: {reason}")
