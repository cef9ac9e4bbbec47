"""
Exception classes for ncm-tagfix.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus an optional details
dictionary, so that per-file failures can be logged with full context and
then swallowed at the unit-of-work boundary.

Exception Hierarchy:
    TagFixError (base)
        ConfigError - Configuration file issues (fatal)
        PathExpansionError - Missing input path or unreadable directory (fatal)
        DecodeError - Malformed base64 text or ciphertext
        CipherError - Padding / key mismatch after decryption
        NotFoundError - No recovery blob present in the file
        FormatError - Recovered payload does not have the expected structure
        FetchError - Cover art download failed (network, timeout, status)
        ContainerIOError - Reading, writing or saving a container failed
        UnsupportedFormatError - No container adapter for the file suffix

Only ConfigError and PathExpansionError are fatal to a run. Everything else
is recovered per file by the batch scheduler.
"""


class TagFixError(Exception):
    """
    Base exception for all ncm-tagfix errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all ncm-tagfix errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., file path, URL).

    Example:
        try:
            meta = extract(path)
        except TagFixError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'file_path': Audio file involved in the error
                     - 'url': URL that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(TagFixError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - Explicit --config file not found
        - config.yaml has invalid YAML syntax
        - Invalid field values (e.g., non-positive thread count)

    Example:
        raise ConfigError(
            "'repair.threads' must be a positive integer",
            details={'field': 'repair.threads', 'value': 0}
        )
    """
    pass


class PathExpansionError(TagFixError):
    """
    Raised when an input path given on the command line cannot be expanded.

    This is a CRITICAL error: the whole run is aborted before any file
    is dispatched.

    Common causes:
        - Path does not exist
        - Directory cannot be listed (permission denied)
    """
    pass


class DecodeError(TagFixError):
    """
    Raised when the recovery blob is not valid base64 or the decoded
    ciphertext is not a whole number of cipher blocks.

    This is a NON-CRITICAL error - the file is skipped.
    """
    pass


class CipherError(TagFixError):
    """
    Raised when the decrypted buffer does not end in valid padding.

    A padding byte of zero, or one larger than the buffer, means the blob
    was not produced with the expected key.

    This is a NON-CRITICAL error - the file is skipped.
    """
    pass


class NotFoundError(TagFixError):
    """
    Raised when a file carries no recovery blob in its comment fields.

    This is the expected outcome for files that never went through the
    upstream container, so callers log it at INFO level and move on.
    """
    pass


class FormatError(TagFixError):
    """
    Raised when the recovered payload does not match the expected structure.

    Common causes:
        - Plaintext shorter than the fixed header
        - Payload is not valid JSON, or not a JSON object
        - A known key has the wrong type (e.g., 'artist' is not a list)
        - An artist entry is not a [name, id] pair

    Example:
        raise FormatError(
            "Artist entry 1 is not a [name, id] pair",
            details={'entry': ['Only Name']}
        )
    """
    pass


class FetchError(TagFixError):
    """
    Raised (or attached to a fallback result) when cover art cannot be fetched.

    This is a NON-CRITICAL error - the fetcher converts it into a URL-only
    picture so the reference is not lost.

    Attributes:
        status_code: HTTP status code if a response was received, else None.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: int | None = None
    ) -> None:
        """
        Initialize fetch error with the HTTP status, if any.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
            status_code: HTTP status returned by the server. None for
                         transport errors and timeouts.
        """
        super().__init__(message, details)
        self.status_code = status_code


class ContainerIOError(TagFixError):
    """
    Raised when an audio container cannot be read, written or saved.

    Wraps mutagen errors and OSError so the rest of the engine never
    deals with library-specific exceptions.

    Example:
        raise ContainerIOError(
            "Failed to save tags: [Errno 13] Permission denied",
            details={'file_path': '/music/song.flac'}
        )
    """
    pass


class UnsupportedFormatError(TagFixError):
    """
    Raised when no container adapter exists for a file's suffix.
    """
    pass
