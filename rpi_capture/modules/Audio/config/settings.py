"""Configuration loading + normalization helpers for the capture appliance."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from rpi_capture.core.network import (
    DEFAULT_BIND_HOST,
    DEFAULT_BROADCAST_ADDRESS,
    DEFAULT_PORT,
    DEFAULT_RECEIVE_BUFFER,
)
from rpi_capture.core.supervisor import FATAL_COOLDOWN_SECONDS

from ..domain import (
    BUFFER_MAX_FRAMES,
    BUFFER_MIN_FRAMES,
    REQUESTED_CHANNELS,
    REQUESTED_SAMPLE_FORMAT,
    REQUESTED_SAMPLE_RATE,
    TARGET_CARD_NAME,
    FormatRequest,
    SampleFormat,
)

LOG_LEVELS: tuple[str, ...] = ("debug", "info", "warning", "error", "critical")


@dataclass(slots=True)
class CaptureSettings:
    """Normalized configuration derived from CLI args and an optional config file."""

    card_name: str = TARGET_CARD_NAME
    port: int = DEFAULT_PORT
    bind_host: str = DEFAULT_BIND_HOST
    broadcast_address: str = DEFAULT_BROADCAST_ADDRESS
    receive_buffer_size: int = DEFAULT_RECEIVE_BUFFER
    channels: int = REQUESTED_CHANNELS
    sample_rate: int = REQUESTED_SAMPLE_RATE
    sample_format: str = REQUESTED_SAMPLE_FORMAT
    buffer_min_frames: int = BUFFER_MIN_FRAMES
    buffer_max_frames: int = BUFFER_MAX_FRAMES
    fatal_cooldown: float = FATAL_COOLDOWN_SECONDS
    log_level: str = "info"
    log_file: Path | None = None
    console_output: bool = True

    @classmethod
    def from_args(cls, args: Any) -> "CaptureSettings":
        """Create a settings instance from an argparse namespace."""

        defaults = cls()

        def _get(name: str, cast):
            value = getattr(args, name, None)
            if value is None:
                return getattr(defaults, name)
            return cast(value)

        log_file = getattr(args, "log_file", None)
        return cls(
            card_name=_get("card_name", str),
            port=_get("port", int),
            bind_host=_get("bind_host", str),
            broadcast_address=_get("broadcast_address", str),
            receive_buffer_size=_get("receive_buffer_size", int),
            channels=_get("channels", int),
            sample_rate=_get("sample_rate", int),
            sample_format=_get("sample_format", lambda value: str(value).upper()),
            buffer_min_frames=_get("buffer_min_frames", int),
            buffer_max_frames=_get("buffer_max_frames", int),
            fatal_cooldown=_get("fatal_cooldown", float),
            log_level=_normalize_log_level(getattr(args, "log_level", None)),
            log_file=Path(log_file) if log_file else None,
            console_output=bool(getattr(args, "console_output", defaults.console_output)),
        )

    def format_request(self) -> FormatRequest:
        return FormatRequest(
            channels=self.channels,
            sample_rate=self.sample_rate,
            sample_format=SampleFormat.parse(self.sample_format),
            buffer_min_frames=self.buffer_min_frames,
            buffer_max_frames=self.buffer_max_frames,
        )


def read_config_file(path: Path | None) -> dict[str, object]:
    """Load key/value pairs from ``key = value`` style files."""

    config: dict[str, object] = {}
    if path is None or not path.exists():
        return config

    text = path.read_text(encoding="utf-8")
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = [part.strip() for part in line.split("=", 1)]
        if not key:
            continue
        lowered = value.lower()
        if lowered in {"true", "yes", "on"}:
            config[key] = True
        elif lowered in {"false", "no", "off"}:
            config[key] = False
        else:
            try:
                config[key] = float(value) if "." in value else int(value)
            except ValueError:
                config[key] = value
    return config


def _config_value(config: Mapping[str, object], key: str, fallback: Any) -> Any:
    value = config.get(key, fallback)
    if value is None:
        return None
    if key.endswith("_file"):
        return Path(str(value))
    if isinstance(fallback, str):
        # "0.0.0.0" or "255.255.255.255" must not come back as numbers
        return str(value)
    return value


def _normalize_log_level(value: Any) -> str:
    text = str(value or "").strip().lower()
    aliases = {"warn": "warning", "fatal": "critical", "err": "error"}
    text = aliases.get(text, text)
    return text if text in LOG_LEVELS else CaptureSettings().log_level


def build_arg_parser(config: Mapping[str, object]) -> argparse.ArgumentParser:
    """Create the CLI parser with defaults sourced from the config file."""

    defaults = CaptureSettings()
    parser = argparse.ArgumentParser(
        description="Network-controlled USB audio capture appliance",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional key = value file supplying defaults for the options below",
    )
    parser.add_argument(
        "--card-name",
        type=str,
        default=_config_value(config, "card_name", defaults.card_name),
        help="Display name of the audio card to record from",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=_config_value(config, "port", defaults.port),
        help="UDP port for commands and status broadcasts",
    )
    parser.add_argument(
        "--bind-host",
        type=str,
        default=_config_value(config, "bind_host", defaults.bind_host),
        help="Local address the command socket binds to",
    )
    parser.add_argument(
        "--broadcast-address",
        type=str,
        default=_config_value(config, "broadcast_address", defaults.broadcast_address),
        help="Destination address for status broadcasts",
    )
    parser.add_argument(
        "--receive-buffer-size",
        type=int,
        default=_config_value(config, "receive_buffer_size", defaults.receive_buffer_size),
        help="Maximum command datagram size in bytes",
    )
    parser.add_argument(
        "--channels",
        type=int,
        default=_config_value(config, "channels", defaults.channels),
        help="Requested channel count",
    )
    parser.add_argument(
        "--sample-rate",
        type=int,
        default=_config_value(config, "sample_rate", defaults.sample_rate),
        help="Requested sample rate (Hz)",
    )
    parser.add_argument(
        "--sample-format",
        type=str,
        default=_config_value(config, "sample_format", defaults.sample_format),
        help="Requested ALSA sample format, e.g. S16_LE",
    )
    parser.add_argument(
        "--buffer-min-frames",
        type=int,
        default=_config_value(config, "buffer_min_frames", defaults.buffer_min_frames),
        help="Smallest acceptable capture buffer (frames)",
    )
    parser.add_argument(
        "--buffer-max-frames",
        type=int,
        default=_config_value(config, "buffer_max_frames", defaults.buffer_max_frames),
        help="Largest acceptable capture buffer (frames)",
    )
    parser.add_argument(
        "--fatal-cooldown",
        type=float,
        default=_config_value(config, "fatal_cooldown", defaults.fatal_cooldown),
        help="Seconds to wait after announcing a fatal error before exiting",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=_config_value(config, "log_level", defaults.log_level),
        help="Logging verbosity",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=_config_value(config, "log_file", defaults.log_file),
        help="Optional rotating log file (skipped when not writable)",
    )

    console_group = parser.add_mutually_exclusive_group()
    console_group.add_argument(
        "--console",
        dest="console_output",
        action="store_true",
        default=_config_value(config, "console_output", defaults.console_output),
        help="Enable console logging",
    )
    console_group.add_argument(
        "--no-console",
        dest="console_output",
        action="store_false",
        help="Disable console logging",
    )

    return parser


def parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments, using ``--config`` (if given) for the defaults."""

    bootstrap = argparse.ArgumentParser(add_help=False)
    bootstrap.add_argument("--config", type=Path, default=None)
    known, _ = bootstrap.parse_known_args(argv)

    config = read_config_file(known.config)
    parser = build_arg_parser(config)
    return parser.parse_args(argv)


def load_settings(argv: list[str] | None = None) -> CaptureSettings:
    return CaptureSettings.from_args(parse_cli_args(argv))


__all__ = [
    "CaptureSettings",
    "LOG_LEVELS",
    "build_arg_parser",
    "load_settings",
    "parse_cli_args",
    "read_config_file",
]
