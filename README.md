# dmgaudio

A pure-Python model of the Game Boy (DMG) audio processing unit, along with
helpers for sending its samples out and for storing files:

- `dmgaudio.apu` provides `Apu`, an emulation of the four sound channels:
  two square waves with sweep and envelope, a wave-RAM channel and a noise
  channel. You write and read registers at their hardware addresses
  `0xFF10`–`0xFF3F`. Addresses outside that range, or values outside
  0–255, raise `ValueError`. `render()` returns one video frame's worth of
  interleaved left/right signed 16-bit samples at 44100 Hz. `reset()`
  restores the power-up register values.
- `dmgaudio.i2s` provides `I2S`, `I2SConfig` and `default_config()`.
  - `I2S.write()` passes each sample to a sink callable as one 32-bit word.
  - `I2S.dma_write()` packs `2 * dma_trans_count` samples into
    `dma_trans_count` words, each shifted right by the volume setting. It
    sends those words and returns them.
  - `set_volume()`, `increase_volume()` and `decrease_volume()` change that
    shift between 0 (loudest) and 16 (quietest).
  - `clock_divider()` returns the state-machine clock divider as an
    (integer, fraction in 1/256) pair.
- `dmgaudio.fresult` covers FAT result codes:
  - `FResult` enumerates the codes.
  - `describe()` returns the description of a code.
  - `to_errno()` returns the matching errno value.
  - `FatError` is an `OSError` that carries the code.
- `dmgaudio.ffstdio` gives a stdio-style file API over a directory on the
  host.
  - `Volume` handles `open`, `stat`, `chdir`, `getcwd`, `mkdir`, `rmdir`,
    `remove`, `rename`, `truncate`, `find` and a recursive `delete_node`.
  - `FFile` handles `read`, `write`, `putc`, `getc`, `gets`, `tell`, `seek`,
    `seteof`, `eof`, `length` and `close`, and works as a context manager.
  - `find()` yields `FindData` entries.
  - `mode_flags()` translates mode strings such as `"r+"` or `"w+x"`.
  - Paths may carry a `0:` drive prefix.
- `dmgaudio.diskio` provides `DiskIO`, which routes status, initialise,
  sector read/write and ioctl requests to card objects you supply.
  `sd_to_disk_result()` maps `SdError` values onto `DiskResult`.
- `dmgaudio.rtc` has these helpers:
  - `encode_fattime()` packs a `datetime` into a 32-bit FAT timestamp.
  - `SavedTime` keeps a time stamp with a signature and an XOR checksum.
    Its `restore()` returns the stamp only if both still match.
  - `wrap_index()` and `xor_checksum()` are small helpers.
- `dmgaudio.debug` has two helpers:
  - `debug_print()` writes a message cut to 255 characters and flushes.
  - `assert_that()` prints a report and raises `AssertionFailure` when a
    condition is false.

## Installing

From a checkout of the project:

    pip install .

No third-party libraries are needed at run time.

## Playing a tone

```python
from dmgaudio.apu import Apu

apu = Apu()
apu.write(0xFF12, 0xF0)   # channel 1: full volume, no envelope
apu.write(0xFF13, 0x00)   # frequency low byte
apu.write(0xFF14, 0x87)   # frequency high bits + trigger
frame = apu.render()      # interleaved left/right samples
```

## Sending samples out

```python
from dmgaudio.i2s import I2S, default_config

received = []
config = default_config()
config.dma_trans_count = len(frame) // 2
out = I2S(config, received.append)
out.set_volume(2)
words = out.dma_write(frame)   # one word per left/right pair
```

## Working with files

The volume root must be an existing directory. Otherwise `Volume` raises
`FatError`.

```python
from dmgaudio.ffstdio import Volume

volume = Volume("/tmp/card")
volume.mkdir("music")
with volume.open("music/track.raw", "w") as f:
    f.write(b"\x00\x01", 1)
print([entry.name for entry in volume.find("music")])
```

Failures raise `FatError`, which carries the `FResult` code and the
matching errno.

## What this package does not do

- It does not play sound. Samples go to whatever callable you give `I2S`.
- It does not read or write FAT disk images. `Volume` stores files in an
  ordinary host directory.
- It contains no SD card driver. `DiskIO` only forwards requests to the
  card objects you pass it.

## Running the tests

    pip install .[test]
    pytest