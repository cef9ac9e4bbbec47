"""
Core module for ncm-tagfix.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with console and file outputs
    - progress: Rich progress bar for batch runs

Usage:
    from ncm_tagfix.core import (
        Config, load_config,
        setup_logging, get_logger,
        TagFixError, ConfigError, NotFoundError
    )
"""

from ncm_tagfix.core.config import (
    ArtworkConfig,
    Config,
    OutputConfig,
    RepairConfig,
    load_config,
)
from ncm_tagfix.core.exceptions import (
    CipherError,
    ConfigError,
    ContainerIOError,
    DecodeError,
    FetchError,
    FormatError,
    NotFoundError,
    PathExpansionError,
    TagFixError,
    UnsupportedFormatError,
)
from ncm_tagfix.core.logger import (
    get_logger,
    log_file_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "RepairConfig",
    "ArtworkConfig",
    "OutputConfig",
    "load_config",
    # Exceptions
    "TagFixError",
    "ConfigError",
    "PathExpansionError",
    "DecodeError",
    "CipherError",
    "NotFoundError",
    "FormatError",
    "FetchError",
    "ContainerIOError",
    "UnsupportedFormatError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_file_failure",
    "shutdown_logging",
]
