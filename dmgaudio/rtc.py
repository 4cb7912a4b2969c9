"""FAT timestamps and a checksummed time stamp that survives a reset."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from datetime import datetime
from functools import reduce
from operator import xor
from typing import Optional, Sequence

SIGNATURE = 0xBABEBABE

# signature, then year, month, day, day of week, hour, minute, second
_LAYOUT = struct.Struct("<Ihbbbbbb")


def encode_fattime(when: Optional[datetime]) -> int:
    """Pack a date and time into the 32-bit FAT timestamp; ``None`` gives 0."""
    if when is None:
        return 0
    year = (when.year - 1980) & 0xFF
    fattime = (year & 0x7F) << 25
    fattime |= (when.month & 0x0F) << 21
    fattime |= (when.day & 0x1F) << 16
    fattime |= (when.hour & 0x1F) << 11
    fattime |= (when.minute & 0x3F) << 5
    fattime |= (when.second // 2) & 0x1F
    return fattime


def wrap_index(index: int, n: int) -> int:
    """Wrap ``index`` (possibly negative) into ``range(n)``."""
    if n <= 0:
        raise ValueError(f"n must be positive: {n}")
    return index % n


def xor_checksum(words: Sequence[int]) -> int:
    """XOR together every word of the covered region except the last."""
    if not words:
        raise ValueError("checksum needs at least one word")
    return reduce(xor, (w & 0xFFFFFFFF for w in words[:-1]), 0)


def _day_of_week(when: datetime) -> int:
    """Day of week counted from Sunday = 0."""
    return (when.weekday() + 1) % 7


@dataclass
class SavedTime:
    """A recent time stamp kept with a signature and checksum."""

    signature: int = 0
    stamp: Optional[datetime] = None
    checksum: int = 0

    def _words(self) -> tuple[int, ...]:
        stamp = self.stamp
        if stamp is None:
            packed = _LAYOUT.pack(self.signature & 0xFFFFFFFF, 0, 0, 0, 0, 0, 0, 0)
        else:
            packed = _LAYOUT.pack(
                self.signature & 0xFFFFFFFF,
                stamp.year,
                stamp.month,
                stamp.day,
                _day_of_week(stamp),
                stamp.hour,
                stamp.minute,
                stamp.second,
            )
        return struct.unpack(f"<{len(packed) // 4}I", packed)

    def save(self, when: datetime) -> None:
        """Record ``when`` (to the second) with a fresh signature and checksum."""
        self.signature = SIGNATURE
        self.stamp = when.replace(microsecond=0, tzinfo=None)
        self.checksum = xor_checksum(self._words())

    def restore(self) -> Optional[datetime]:
        """Return the saved time if it is present and intact, else ``None``."""
        if self.stamp is None or not self.stamp.year:
            return None
        if self.signature != SIGNATURE:
            return None
        if self.checksum != xor_checksum(self._words()):
            return None
        return self.stamp