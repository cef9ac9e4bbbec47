"""
Configuration management for ncm-tagfix.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file is optional. When it is absent every value falls
back to its default, so the tool can be run with nothing but paths on
the command line.

The configuration file contains:
    - Worker pool size and skip marker extension
    - Cover art download settings (enabled, timeout, user agent)
    - Optional directory for log files

Configuration File Location:
    config.yaml in the current working directory, or any file passed
    with --config.

Example config.yaml:
    repair:
      threads: 16
      skip_marker_extension: .ncm

    artwork:
      enabled: true
      timeout: 30
      user_agent: "ncm-tagfix/0.1"

    output:
      log_directory: ~/.local/state/ncm-tagfix
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ncm_tagfix.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_THREADS = 16
DEFAULT_SKIP_MARKER_EXTENSION = ".ncm"
DEFAULT_FETCH_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "ncm-tagfix/0.1"


@dataclass(frozen=True)
class RepairConfig:
    """
    Batch repair behavior configuration.

    Attributes:
        threads: Number of files processed concurrently. Default: 16.
        skip_marker_extension: Extension of the companion file whose
                   presence makes the scheduler leave a file untouched.
                   Default: ".ncm".
    """
    threads: int = DEFAULT_THREADS
    skip_marker_extension: str = DEFAULT_SKIP_MARKER_EXTENSION


@dataclass(frozen=True)
class ArtworkConfig:
    """
    Cover art download configuration.

    Attributes:
        enabled: Whether cover art is fetched and embedded at all.
        timeout: HTTP timeout in seconds for a single cover download.
        user_agent: User-Agent header sent with cover requests.
    """
    enabled: bool = True
    timeout: float = DEFAULT_FETCH_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class OutputConfig:
    """
    Output configuration.

    Attributes:
        log_directory: Directory for log files, or None to log to the
                       console only. ~ is expanded.
    """
    log_directory: Path | None = None


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable. CLI flags produce
    a modified copy with dataclasses.replace().

    Attributes:
        repair: Batch repair settings.
        artwork: Cover art settings.
        output: Log output settings.
    """
    repair: RepairConfig = RepairConfig()
    artwork: ArtworkConfig = ArtworkConfig()
    output: OutputConfig = OutputConfig()


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory
                     and falls back to defaults when it does not exist.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is missing, the YAML is
                     invalid, or a field has an invalid value.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        if explicit:
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                details={"file_path": str(config_path)}
            )
        return Config()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file is a valid "use the defaults" config
    if raw_config is None:
        return Config()

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    _validate_config(raw_config)

    return Config(
        repair=_parse_repair_config(raw_config.get("repair")),
        artwork=_parse_artwork_config(raw_config.get("artwork")),
        output=_parse_output_config(raw_config.get("output")),
    )


def _validate_config(raw_config: dict[str, Any]) -> None:
    """
    Validate that every known section present is a dictionary.

    Raises:
        ConfigError: If a section has the wrong type.
    """
    for section in ("repair", "artwork", "output"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )


def _parse_repair_config(section: dict[str, Any] | None) -> RepairConfig:
    """
    Parse and validate the repair section.

    Raises:
        ConfigError: If threads is not a positive integer or the marker
                     extension does not start with a dot.
    """
    if section is None:
        return RepairConfig()

    threads = section.get("threads", DEFAULT_THREADS)
    # bool is an int subclass, reject it explicitly
    if isinstance(threads, bool) or not isinstance(threads, int) or threads < 1:
        raise ConfigError(
            "'repair.threads' must be a positive integer",
            details={"field": "repair.threads", "value": threads}
        )

    marker = section.get("skip_marker_extension", DEFAULT_SKIP_MARKER_EXTENSION)
    if not isinstance(marker, str) or not marker.startswith(".") or len(marker) < 2:
        raise ConfigError(
            "'repair.skip_marker_extension' must be an extension like '.ncm'",
            details={"field": "repair.skip_marker_extension", "value": marker}
        )

    return RepairConfig(threads=threads, skip_marker_extension=marker)


def _parse_artwork_config(section: dict[str, Any] | None) -> ArtworkConfig:
    """
    Parse and validate the artwork section.

    Raises:
        ConfigError: If enabled is not a bool, timeout is not a positive
                     number, or user_agent is empty.
    """
    if section is None:
        return ArtworkConfig()

    enabled = section.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigError(
            "'artwork.enabled' must be true or false",
            details={"field": "artwork.enabled", "value": enabled}
        )

    timeout = section.get("timeout", DEFAULT_FETCH_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(
            "'artwork.timeout' must be a positive number of seconds",
            details={"field": "artwork.timeout", "value": timeout}
        )

    user_agent = section.get("user_agent", DEFAULT_USER_AGENT)
    if not isinstance(user_agent, str) or not user_agent.strip():
        raise ConfigError(
            "'artwork.user_agent' must be a non-empty string",
            details={"field": "artwork.user_agent"}
        )

    return ArtworkConfig(
        enabled=enabled,
        timeout=float(timeout),
        user_agent=user_agent.strip()
    )


def _parse_output_config(section: dict[str, Any] | None) -> OutputConfig:
    """
    Parse and validate the output section.

    Expands ~ and converts to an absolute Path. Does NOT create the
    directory (setup_logging does that).

    Raises:
        ConfigError: If log_directory is set but not a non-empty string.
    """
    if section is None:
        return OutputConfig()

    raw_dir = section.get("log_directory")
    if raw_dir is None:
        return OutputConfig()

    if not isinstance(raw_dir, str) or not raw_dir.strip():
        raise ConfigError(
            "'output.log_directory' must be a non-empty string or null",
            details={"field": "output.log_directory"}
        )

    return OutputConfig(log_directory=Path(raw_dir.strip()).expanduser().resolve())
