"""Exception hierarchy for MovieMemo.

The insights engine itself never raises: malformed records are excluded
fail-soft. These exceptions cover the boundaries around it (configuration
files and the record repository).
"""


class MovieMemoError(Exception):
    """Base exception for all MovieMemo errors."""

    pass


class ConfigError(MovieMemoError):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Raised when a config file exists but cannot be used.

    Raised when:
    - The file cannot be read
    - The file contains malformed YAML
    """

    pass


class RepositoryError(MovieMemoError):
    """Raised when the record store cannot load or save a snapshot."""

    pass
