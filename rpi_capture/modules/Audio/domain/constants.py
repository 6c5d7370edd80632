"""Constants for the audio capture module."""

TARGET_CARD_NAME = "USB Audio Device"

REQUESTED_CHANNELS = 1
REQUESTED_SAMPLE_RATE = 44_100
REQUESTED_SAMPLE_FORMAT = "S16_LE"
BUFFER_MIN_FRAMES = 8192
BUFFER_MAX_FRAMES = 16384

DB_FLOOR = -120.0
