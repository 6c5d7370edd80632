"""Configuration for the audio capture module."""

from .settings import (
    LOG_LEVELS,
    CaptureSettings,
    build_arg_parser,
    load_settings,
    parse_cli_args,
    read_config_file,
)

__all__ = [
    "CaptureSettings",
    "LOG_LEVELS",
    "build_arg_parser",
    "load_settings",
    "parse_cli_args",
    "read_config_file",
]
