"""Game Boy APU emulation with an I2S sample sink, a FAT-style file API, and disk, RTC and debug helpers."""

__version__ = "0.1.0"
__all__ = ["apu", "i2s", "fresult", "debug", "ffstdio", "diskio", "rtc"]