"""I2S audio output: configuration, clock divider and sample framing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

MAX_ATTENUATION = 16

_U32 = 0xFFFFFFFF
_INT16_MIN = -0x8000
_INT16_MAX = 0x7FFF


@dataclass
class I2SConfig:
    """Settings of one I2S output."""

    sample_freq: int = 44100
    channel_count: int = 2
    data_pin: int = 26
    clock_pin_base: int = 27
    sm: int = 0
    dma_channel: int = 0
    dma_trans_count: int = 0
    volume: int = 0


def default_config() -> I2SConfig:
    """Return the default I2S settings."""
    return I2SConfig()


def clock_divider(system_clock_hz: int, sample_freq: int) -> tuple[int, int]:
    """Return the (integer, fraction) state-machine clock divider.

    The fraction is in 1/256 units.
    """
    if sample_freq <= 0:
        raise ValueError(f"sample frequency must be positive: {sample_freq}")
    if system_clock_hz < 0:
        raise ValueError(f"system clock must not be negative: {system_clock_hz}")
    divider = ((system_clock_hz * 4) & _U32) // sample_freq
    return divider >> 8, divider & 0xFF


def _check_int16(samples: Iterable[int]) -> list[int]:
    values = list(samples)
    for value in values:
        if not _INT16_MIN <= value <= _INT16_MAX:
            raise ValueError(f"sample out of 16-bit range: {value}")
    return values


class I2S:
    """An I2S transmitter that pushes 32-bit words into a sink."""

    def __init__(self, config: I2SConfig, sink: Callable[[int], None]) -> None:
        self.config = config
        self._sink = sink

    @property
    def volume(self) -> int:
        """Attenuation: 0 is the loudest, 16 the quietest."""
        return self.config.volume

    def write(self, samples: Iterable[int]) -> None:
        """Send each signed 16-bit sample as one sign-extended 32-bit word."""
        for sample in _check_int16(samples):
            self._sink(sample & _U32)

    def dma_write(self, samples: Sequence[int]) -> list[int]:
        """Pack a buffer of interleaved samples into words and send them.

        Exactly ``dma_trans_count`` words are sent, built from the first
        ``2 * dma_trans_count`` samples; the sent words are returned.
        """
        needed = self.config.dma_trans_count * 2
        values = _check_int16(samples)
        if len(values) < needed:
            raise ValueError(
                f"dma_write needs {needed} samples, got {len(values)}"
            )
        shift = self.config.volume
        halves = [(value >> shift) & 0xFFFF for value in values[:needed]]
        words = [lo | (hi << 16) for lo, hi in zip(halves[0::2], halves[1::2])]
        for word in words:
            self._sink(word)
        return words

    def set_volume(self, volume: int) -> None:
        """Set the attenuation, capped at 16."""
        if volume < 0:
            raise ValueError(f"volume must not be negative: {volume}")
        self.config.volume = min(volume, MAX_ATTENUATION)

    def increase_volume(self) -> None:
        """Make the output one step louder."""
        if self.config.volume > 0:
            self.config.volume -= 1

    def decrease_volume(self) -> None:
        """Make the output one step quieter."""
        if self.config.volume < MAX_ATTENUATION:
            self.config.volume += 1