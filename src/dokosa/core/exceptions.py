"""
Custom exceptions for dokosa.
"""


class DokosaError(Exception):
    """Base exception for all dokosa errors."""
    pass


class IndexLogError(DokosaError):
    """
    Error reading or writing the index log file.

    Raised when:
    - The index file is missing (load) or already exists (create)
    - The index file cannot be opened, read or replaced
    """

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class IndexFormatError(IndexLogError):
    """
    A line of the index log could not be decoded.

    Raised when:
    - The line is not valid JSON
    - The `type` discriminator is missing or unknown
    - Fields are missing, unexpected, or of the wrong type
    """

    def __init__(self, message: str, path: str = None, line_number: int = None):
        super().__init__(message, path=path)
        self.line_number = line_number


class IndexCorruptionError(IndexLogError):
    """A chunk entry appears before any repository entry."""
    pass


class EmbeddingProviderError(DokosaError):
    """
    Error communicating with an embedding provider.

    Raised when:
    - Provider is unreachable or the request times out
    - Provider returns a non-success status
    - Response body is not the expected shape
    """

    def __init__(self, message: str, provider: str = None, status_code: int = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class VcsError(DokosaError):
    """
    Error running git.

    Raised when:
    - The git executable cannot be started
    - A path is not inside a git repository
    - A git command exits with a non-zero status
    """
    pass


class PreconditionError(DokosaError):
    """A command was asked to do something the index state does not allow."""
    pass


class RepositoryAlreadyIndexedError(PreconditionError):
    """The repository already has a section in the index log."""

    def __init__(self, repository_path: str):
        super().__init__(f"Repository has already been added: {repository_path}")
        self.repository_path = repository_path


class RepositoryNotIndexedError(PreconditionError):
    """The repository has no section in the index log."""

    def __init__(self, repository_path: str):
        super().__init__(f"Repository has not been added: {repository_path}")
        self.repository_path = repository_path


class ConfigError(DokosaError):
    """
    Error in dokosa configuration.

    Raised when:
    - Configuration file is missing or not valid YAML
    - Configuration keys are unknown or values have the wrong type
    """
    pass
