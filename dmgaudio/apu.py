"""Emulation of the Game Boy (DMG) audio processing unit."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

SAMPLE_RATE = 44100
DMG_CLOCK_FREQ = 4194304.0
SCREEN_REFRESH_CYCLES = 70224.0
VERTICAL_SYNC = DMG_CLOCK_FREQ / SCREEN_REFRESH_CYCLES

SAMPLES_PER_FRAME = int(SAMPLE_RATE / VERTICAL_SYNC)
BUFFER_SIZE_BYTES = SAMPLES_PER_FRAME * 4

REGISTER_BASE = 0xFF10
REGISTER_LAST = 0xFF3F

_U8 = 0xFF
_U16 = 0xFFFF
_U32 = 0xFFFFFFFF

_CLOCK = int(DMG_CLOCK_FREQ)
_NSAMPLES = SAMPLES_PER_FRAME * 2
_MEM_SIZE = REGISTER_LAST - REGISTER_BASE + 1
_FREQ_INC_REF = SAMPLE_RATE * 16
_MAX_CHAN_VOLUME = 15
_NR52 = 0xFF26 - REGISTER_BASE
_WAVE_RAM = 0xFF30 - REGISTER_BASE


def _s16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _s32(value: int) -> int:
    value &= _U32
    return value - 0x100000000 if value & 0x80000000 else value


def _cdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


_VOL_HIGH = _cdiv(_cdiv(32767, 8), _MAX_CHAN_VOLUME)
_VOL_LOW = _cdiv(_cdiv(-32768, 8), _MAX_CHAN_VOLUME)
_WAVE_UNIT = 32767 // 64

_OR_MASK = bytes((
    0x80, 0x3F, 0x00, 0xFF, 0xBF,
    0xFF, 0x3F, 0x00, 0xFF, 0xBF,
    0x7F, 0xFF, 0x9F, 0xFF, 0xBF,
    0xFF, 0xFF, 0x00, 0x00, 0xBF,
    0x00, 0x00, 0x70,
    0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF,
    0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
))

_REGS_INIT = bytes((
    0x80, 0xBF, 0xF3, 0xFF, 0x3F,
    0xFF, 0x3F, 0x00, 0xFF, 0x3F,
    0x7F, 0xFF, 0x9F, 0xFF, 0x3F,
    0xFF, 0xFF, 0x00, 0x00, 0x3F,
    0x77, 0xF3, 0xF1,
))

_WAVE_INIT = bytes((
    0xAC, 0xDD, 0xDA, 0x48,
    0x36, 0x02, 0xCF, 0x16,
    0x2C, 0x04, 0xE5, 0x2C,
    0xAC, 0xDD, 0xDA, 0x48,
))

_DUTY_LOOKUP = (0x10, 0x30, 0x3C, 0xCF)
_NOISE_DIVISORS = (8, 16, 32, 48, 64, 80, 96, 112)
_WAVE_DIVISORS = (32767, 1, 2, 4)  # first entry is never used


@dataclass
class _LengthCounter:
    load: int = 0
    enabled: bool = False
    counter: int = 0
    inc: int = 0


@dataclass
class _Envelope:
    step: int = 0
    up: bool = False
    counter: int = 0
    inc: int = 0


@dataclass
class _Sweep:
    freq: int = 0
    rate: int = 0
    shift: int = 0
    up: bool = False
    counter: int = 0
    inc: int = 0


@dataclass
class _Channel:
    index: int
    enabled: bool = False
    powered: bool = False
    on_left: bool = False
    on_right: bool = False
    volume: int = 0
    volume_init: int = 0
    freq: int = 0
    freq_counter: int = 0
    freq_inc: int = 0
    val: int = 0
    length: _LengthCounter = field(default_factory=_LengthCounter)
    env: _Envelope = field(default_factory=_Envelope)
    sweep: _Sweep = field(default_factory=_Sweep)
    # Square, noise and wave parameters share the same four bytes.
    shared: bytearray = field(default_factory=lambda: bytearray(4))

    @property
    def duty(self) -> int:
        return self.shared[0]

    @duty.setter
    def duty(self, value: int) -> None:
        self.shared[0] = value & _U8

    @property
    def duty_counter(self) -> int:
        return self.shared[1]

    @duty_counter.setter
    def duty_counter(self, value: int) -> None:
        self.shared[1] = value & _U8

    @property
    def lfsr_reg(self) -> int:
        return self.shared[0] | (self.shared[1] << 8)

    @lfsr_reg.setter
    def lfsr_reg(self, value: int) -> None:
        self.shared[0] = value & _U8
        self.shared[1] = (value >> 8) & _U8

    @property
    def lfsr_wide(self) -> int:
        return self.shared[2]

    @lfsr_wide.setter
    def lfsr_wide(self, value: int) -> None:
        self.shared[2] = value & _U8

    @property
    def lfsr_div(self) -> int:
        return self.shared[3]

    @lfsr_div.setter
    def lfsr_div(self, value: int) -> None:
        self.shared[3] = value & _U8

    @property
    def wave_sample(self) -> int:
        return self.shared[0]

    @wave_sample.setter
    def wave_sample(self, value: int) -> None:
        self.shared[0] = value & _U8


def _set_note_freq(c: _Channel, freq: int) -> None:
    c.freq_inc = (freq * (_FREQ_INC_REF // SAMPLE_RATE)) & _U32


def _ticks(c: _Channel) -> Iterator[int]:
    """Yield the position of every waveform step inside one output sample."""
    pos = 0
    while True:
        c.freq_counter = (c.freq_counter + ((c.freq_inc - pos) & _U32)) & _U32
        if c.freq_counter <= _FREQ_INC_REF:
            return
        pos = (c.freq_inc - (c.freq_counter - _FREQ_INC_REF)) & _U32
        c.freq_counter = 0
        yield pos


def _update_env(c: _Channel) -> None:
    env = c.env
    env.counter = (env.counter + env.inc) & _U32
    while env.counter > _FREQ_INC_REF:
        if env.step:
            c.volume = (c.volume + (1 if env.up else -1)) & _U8
            if c.volume in (0, _MAX_CHAN_VOLUME):
                env.inc = 0
            c.volume = min(_MAX_CHAN_VOLUME, c.volume)
        env.counter -= _FREQ_INC_REF


def _update_sweep(c: _Channel) -> None:
    sweep = c.sweep
    sweep.counter = (sweep.counter + sweep.inc) & _U32
    while sweep.counter > _FREQ_INC_REF:
        if sweep.shift:
            inc = sweep.freq >> sweep.shift
            if not sweep.up:
                inc = -inc & _U16
            c.freq = (c.freq + inc) & _U16
            if c.freq > 2047:
                c.enabled = False
            else:
                _set_note_freq(c, _CLOCK // ((2048 - c.freq) << 5))
                c.freq_inc = (c.freq_inc * 8) & _U32
        elif sweep.rate:
            c.enabled = False
        sweep.counter -= _FREQ_INC_REF


class Apu:
    """Register-level model of the four DMG sound channels."""

    def __init__(self) -> None:
        self._mem = bytearray(_MEM_SIZE)
        self._vol_l = 0
        self._vol_r = 0
        self._chans = [_Channel(i) for i in range(4)]
        self.reset()

    def reset(self) -> None:
        """Reset the channels and write the power-up register values."""
        self._chans = [_Channel(i) for i in range(4)]
        self._chans[0].val = -1
        self._chans[1].val = -1
        for offset, value in enumerate(_REGS_INIT):
            self.write(REGISTER_BASE + offset, value)
        for offset, value in enumerate(_WAVE_INIT):
            self.write(0xFF30 + offset, value)

    @staticmethod
    def _offset(addr: int) -> int:
        if not REGISTER_BASE <= addr <= REGISTER_LAST:
            raise ValueError(f"audio register address out of range: {addr:#06x}")
        return addr - REGISTER_BASE

    def read(self, addr: int) -> int:
        """Return the byte visible at an audio register address."""
        offset = self._offset(addr)
        return self._mem[offset] | _OR_MASK[offset]

    def write(self, addr: int, val: int) -> None:
        """Write a byte to an audio register."""
        offset = self._offset(addr)
        if not 0 <= val <= _U8:
            raise ValueError(f"register value out of range: {val}")

        if addr == 0xFF26:
            self._mem[_NR52] = val & 0x80
            if not val & 0x80:
                # Power off clears every register except wave RAM.
                self._mem[:_NR52] = bytes(_NR52)
                for c in self._chans:
                    c.enabled = False
            return

        if self._mem[_NR52] == 0:
            return

        self._mem[offset] = val
        i = offset // 5

        if addr in (0xFF12, 0xFF17, 0xFF21):
            c = self._chans[i]
            c.volume_init = val >> 4
            c.powered = (val >> 3) != 0
            # "Zombie mode" volume changes on a running channel.
            if c.powered and c.enabled:
                if c.env.step == 0 and c.env.inc != 0:
                    c.volume = (c.volume + (1 if val & 0x08 else 2)) & _U8
                else:
                    c.volume = (16 - c.volume) & _U8
                c.volume &= 0x0F
                c.env.step = val & 0x07
        elif addr == 0xFF1C:
            c = self._chans[i]
            c.volume = c.volume_init = (val >> 5) & 0x03
        elif addr in (0xFF11, 0xFF16, 0xFF20):
            c = self._chans[i]
            c.length.load = val & 0x3F
            c.duty = _DUTY_LOOKUP[val >> 6]
        elif addr == 0xFF1B:
            self._chans[i].length.load = val
        elif addr in (0xFF13, 0xFF18, 0xFF1D):
            c = self._chans[i]
            c.freq = (c.freq & 0xFF00) | val
        elif addr == 0xFF1A:
            self._chans[i].powered = (val & 0x80) != 0
            self._enable(i, bool(val & 0x80))
        elif addr in (0xFF14, 0xFF19, 0xFF1E, 0xFF23):
            c = self._chans[i]
            if addr != 0xFF23:
                c.freq = (c.freq & 0x00FF) | ((val & 0x07) << 8)
            c.length.enabled = bool(val & 0x40)
            if val & 0x80:
                self._trigger(i)
        elif addr == 0xFF22:
            noise = self._chans[3]
            noise.freq = val >> 4
            noise.lfsr_wide = 0 if val & 0x08 else 1
            noise.lfsr_div = val & 0x07
        elif addr == 0xFF24:
            self._vol_l = (val >> 4) & 0x07
            self._vol_r = val & 0x07
        elif addr == 0xFF25:
            for j, c in enumerate(self._chans):
                c.on_left = bool((val >> (4 + j)) & 1)
                c.on_right = bool((val >> j) & 1)

    def render(self) -> list[int]:
        """Produce one frame of interleaved stereo signed 16-bit samples."""
        samples = [0] * _NSAMPLES
        self._update_square(samples, second=False)
        self._update_square(samples, second=True)
        self._update_wave(samples)
        self._update_noise(samples)
        return samples

    def _enable(self, i: int, enable: bool) -> None:
        self._chans[i].enabled = enable
        bits = sum(1 << c.index for c in self._chans if c.enabled)
        self._mem[_NR52] = (self._mem[_NR52] & 0x80) | bits

    def _update_len(self, c: _Channel) -> None:
        length = c.length
        if not length.enabled:
            return
        length.counter = (length.counter + length.inc) & _U32
        if length.counter > _FREQ_INC_REF:
            self._enable(c.index, False)
            length.counter = 0

    def _mix(self, samples: list[int], i: int, c: _Channel, sample: int) -> None:
        samples[i] = _s16(samples[i] + sample * int(c.on_left) * self._vol_l)
        samples[i + 1] = _s16(samples[i + 1] + sample * int(c.on_right) * self._vol_r)

    def _update_square(self, samples: list[int], second: bool) -> None:
        c = self._chans[1 if second else 0]
        if not c.powered or not c.enabled:
            return

        _set_note_freq(c, _CLOCK // ((2048 - c.freq) << 5))
        c.freq_inc = (c.freq_inc * 8) & _U32

        for i in range(0, _NSAMPLES, 2):
            self._update_len(c)
            if not c.enabled:
                continue
            _update_env(c)
            if not second:
                _update_sweep(c)

            prev = 0
            sample = 0
            for pos in _ticks(c):
                c.duty_counter = (c.duty_counter + 1) & 7
                sample = _s32(sample + ((pos - prev) & _U32) // c.freq_inc * c.val)
                c.val = _VOL_HIGH if c.duty & (1 << c.duty_counter) else _VOL_LOW
                prev = pos

            sample = _s32(sample + c.val)
            sample = _s32(sample * c.volume)
            sample = _cdiv(sample, 4)
            self._mix(samples, i, c, sample)

    def _wave_sample(self, pos: int, volume: int) -> int:
        byte = self._mem[_WAVE_RAM + pos // 2]
        nibble = byte & 0x0F if pos & 1 else byte >> 4
        return nibble >> (volume - 1) if volume else 0

    def _update_wave(self, samples: list[int]) -> None:
        c = self._chans[2]
        if not c.powered or not c.enabled:
            return

        _set_note_freq(c, (_CLOCK // 64) // (2048 - c.freq))
        c.freq_inc = (c.freq_inc * 32) & _U32

        for i in range(0, _NSAMPLES, 2):
            self._update_len(c)
            if not c.enabled:
                continue

            prev = 0
            sample = 0
            c.wave_sample = self._wave_sample(c.val, c.volume)
            for pos in _ticks(c):
                c.val = (c.val + 1) & 31
                step = ((pos - prev) & _U32) // c.freq_inc
                sample = _s32(sample + step * (c.wave_sample - 8) * _WAVE_UNIT)
                c.wave_sample = self._wave_sample(c.val, c.volume)
                prev = pos

            sample = _s32(sample + (c.wave_sample - 8) * _WAVE_UNIT)
            if c.volume == 0:
                continue
            sample = _cdiv(sample, _WAVE_DIVISORS[c.volume])
            sample = _cdiv(sample, 4)
            self._mix(samples, i, c, sample)

    def _update_noise(self, samples: list[int]) -> None:
        c = self._chans[3]
        if not c.powered:
            return

        _set_note_freq(c, _CLOCK // (_NOISE_DIVISORS[c.lfsr_div] << c.freq))
        if c.freq >= 14:
            c.enabled = False

        for i in range(0, _NSAMPLES, 2):
            self._update_len(c)
            if not c.enabled:
                continue
            _update_env(c)

            prev = 0
            sample = 0
            for pos in _ticks(c):
                reg = ((c.lfsr_reg << 1) | (1 if c.val >= _VOL_HIGH else 0)) & _U16
                c.lfsr_reg = reg
                if c.lfsr_wide:
                    feedback = ((reg >> 14) & 1) ^ ((reg >> 13) & 1)
                else:
                    feedback = ((reg >> 6) & 1) ^ ((reg >> 5) & 1)
                c.val = _VOL_LOW if feedback else _VOL_HIGH
                sample = _s32(sample + ((pos - prev) & _U32) // c.freq_inc * c.val)
                prev = pos

            sample = _s32(sample + c.val)
            sample = _s32(sample * c.volume)
            sample = _cdiv(sample, 4)
            self._mix(samples, i, c, sample)

    def _trigger(self, i: int) -> None:
        c = self._chans[i]
        self._enable(i, True)
        c.volume = c.volume_init

        env_reg = self._mem[(0xFF12 - REGISTER_BASE) + i * 5]
        c.env.step = env_reg & 0x07
        c.env.up = bool(env_reg & 0x08)
        if c.env.step:
            c.env.inc = (_FREQ_INC_REF * 64) // (c.env.step * SAMPLE_RATE)
        else:
            c.env.inc = (8 * _FREQ_INC_REF) // SAMPLE_RATE
        c.env.counter = 0

        if i == 0:
            sweep_reg = self._mem[0]
            sweep = c.sweep
            sweep.freq = c.freq
            sweep.rate = (sweep_reg >> 4) & 0x07
            sweep.up = not sweep_reg & 0x08
            sweep.shift = sweep_reg & 0x07
            sweep.inc = (
                (128 * _FREQ_INC_REF) // (sweep.rate * SAMPLE_RATE) if sweep.rate else 0
            )
            sweep.counter = _FREQ_INC_REF

        len_max = 64
        if i == 2:
            len_max = 256
            c.val = 0
        elif i == 3:
            c.lfsr_reg = 0xFFFF
            c.val = _VOL_LOW

        c.length.inc = (
            (256 * _FREQ_INC_REF) // (SAMPLE_RATE * (len_max - c.length.load))
        ) & _U32
        c.length.counter = 0