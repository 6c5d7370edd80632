"""Audio hardware boundary.

The sounddevice implementation lives in :mod:`.sounddevice_backend` and is
imported on demand, so the rest of the module works without PortAudio.
"""

from .base import AudioBackend, AudioDeviceError, DeviceHandle

__all__ = ["AudioBackend", "AudioDeviceError", "DeviceHandle"]
