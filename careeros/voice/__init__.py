"""Realtime voice session: PCM16 codec, playback scheduling and scoped devices."""

from .audio import (
    INPUT_MIME_TYPE,
    INPUT_SAMPLE_RATE,
    OUTPUT_SAMPLE_RATE,
    PlaybackScheduler,
    decode_pcm16,
    encode_pcm16,
)
from .session import AudioBackend, GeminiLiveConnector, LiveConnector, VoiceSession, VoiceState

__all__ = [
    "AudioBackend",
    "GeminiLiveConnector",
    "INPUT_MIME_TYPE",
    "INPUT_SAMPLE_RATE",
    "LiveConnector",
    "OUTPUT_SAMPLE_RATE",
    "PlaybackScheduler",
    "VoiceSession",
    "VoiceState",
    "decode_pcm16",
    "encode_pcm16",
]
