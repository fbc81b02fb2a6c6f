"""PCM16 codec and gap-free playback scheduling for the voice session."""

from __future__ import annotations

import base64
from typing import Union

import numpy as np

INPUT_SAMPLE_RATE = 16000
OUTPUT_SAMPLE_RATE = 24000
INPUT_MIME_TYPE = f"audio/pcm;rate={INPUT_SAMPLE_RATE}"

_PCM16_SCALE = 32768.0


def encode_pcm16(samples) -> str:
    """Float samples in [-1, 1] to base64 little-endian int16 PCM."""
    data = np.asarray(samples, dtype=np.float32).reshape(-1)
    scaled = np.clip(data * _PCM16_SCALE, -32768, 32767)
    return base64.b64encode(scaled.astype("<i2").tobytes()).decode("ascii")


def decode_pcm16(data: Union[str, bytes], channels: int = 1) -> np.ndarray:
    """Interleaved int16 PCM (raw bytes or base64) to a (channels, frames) float32 array."""
    if channels < 1:
        raise ValueError("channels must be >= 1")
    raw = base64.b64decode(data) if isinstance(data, str) else bytes(data)
    usable = len(raw) - len(raw) % (2 * channels)
    pcm = np.frombuffer(raw[:usable], dtype="<i2")
    return (pcm.reshape(-1, channels).T / _PCM16_SCALE).astype(np.float32)


def duration_of(samples: np.ndarray, sample_rate: int = OUTPUT_SAMPLE_RATE) -> float:
    frames = samples.shape[-1] if samples.ndim else 0
    return frames / float(sample_rate)


class PlaybackScheduler:
    """Queues buffers back to back: each starts at max(now, end of the previous one)."""

    def __init__(self) -> None:
        self.next_start = 0.0

    def schedule(self, duration: float, now: float) -> float:
        start = max(now, self.next_start)
        self.next_start = start + duration
        return start

    def reset(self) -> None:
        self.next_start = 0.0
