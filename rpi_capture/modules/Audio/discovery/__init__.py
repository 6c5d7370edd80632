"""Audio hardware discovery."""

from .scanner import DiscoveryError, find_devices, parse_alsa_device_name

__all__ = ["DiscoveryError", "find_devices", "parse_alsa_device_name"]
