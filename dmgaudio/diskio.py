"""Disk access layer that routes file system requests to SD cards."""

from __future__ import annotations

from enum import Enum, IntEnum, IntFlag, auto
from typing import Optional, Protocol, Sequence


class SdError(Enum):
    """Result of an SD card block device operation."""

    NONE = auto()
    WOULD_BLOCK = auto()
    UNSUPPORTED = auto()
    PARAMETER = auto()
    NO_INIT = auto()
    NO_DEVICE = auto()
    WRITE_PROTECTED = auto()
    UNUSABLE = auto()
    NO_RESPONSE = auto()
    CRC = auto()
    ERASE = auto()
    WRITE = auto()


class DiskResult(IntEnum):
    """Result of a disk operation as seen by the file system."""

    OK = 0
    ERROR = 1
    WRPRT = 2
    NOTRDY = 3
    PARERR = 4


class DiskStatus(IntFlag):
    """Drive status bits."""

    NOINIT = 0x01
    NODISK = 0x02
    PROTECT = 0x04


class IoctlCommand(IntEnum):
    """Control codes accepted by :meth:`DiskIO.ioctl`."""

    CTRL_SYNC = 0
    GET_SECTOR_COUNT = 1
    GET_SECTOR_SIZE = 2
    GET_BLOCK_SIZE = 3


class SdCard(Protocol):
    """What :class:`DiskIO` needs from an SD card driver."""

    status: int

    def card_detect(self) -> None: ...

    def init(self) -> int: ...

    def read_blocks(self, sector: int, count: int) -> tuple[SdError, bytes]: ...

    def write_blocks(self, data: bytes, sector: int) -> SdError: ...

    def sectors(self) -> int: ...


_NOT_READY = {SdError.UNUSABLE, SdError.NO_RESPONSE, SdError.NO_INIT, SdError.NO_DEVICE}
_PARAMETER = {SdError.PARAMETER, SdError.UNSUPPORTED}

_ERASE_BLOCK_SIZE = 1


def sd_to_disk_result(code: object) -> DiskResult:
    """Map an SD card result onto a disk result."""
    if code is SdError.NONE:
        return DiskResult.OK
    if code in _NOT_READY:
        return DiskResult.NOTRDY
    if code in _PARAMETER:
        return DiskResult.PARERR
    if code is SdError.WRITE_PROTECTED:
        return DiskResult.WRPRT
    return DiskResult.ERROR


class DiskIO:
    """Physical drives numbered from 0, one per configured card."""

    def __init__(self, cards: Sequence[SdCard]) -> None:
        self._cards = list(cards)

    def _card(self, drive: int) -> Optional[SdCard]:
        if 0 <= drive < len(self._cards):
            return self._cards[drive]
        return None

    def status(self, drive: int) -> int:
        """Refresh card detection and return the drive status bits."""
        card = self._card(drive)
        if card is None:
            return int(DiskResult.PARERR)
        card.card_detect()
        return card.status

    def initialize(self, drive: int) -> int:
        """Initialise the card and return its status bits."""
        card = self._card(drive)
        if card is None:
            return int(DiskResult.PARERR)
        return card.init()

    def read(self, drive: int, sector: int, count: int) -> tuple[DiskResult, bytes]:
        """Read ``count`` sectors starting at ``sector``."""
        card = self._card(drive)
        if card is None:
            return DiskResult.PARERR, b""
        code, data = card.read_blocks(sector, count)
        result = sd_to_disk_result(code)
        return result, (data if result is DiskResult.OK else b"")

    def write(self, drive: int, data: bytes, sector: int) -> DiskResult:
        """Write whole sectors of ``data`` starting at ``sector``."""
        card = self._card(drive)
        if card is None:
            return DiskResult.PARERR
        return sd_to_disk_result(card.write_blocks(bytes(data), sector))

    def ioctl(self, drive: int, command: int) -> tuple[DiskResult, Optional[int]]:
        """Run a control command; return its result and value, if any."""
        card = self._card(drive)
        if card is None:
            return DiskResult.PARERR, None
        if command == IoctlCommand.GET_SECTOR_COUNT:
            count = card.sectors()
            return (DiskResult.OK if count else DiskResult.ERROR), count
        if command == IoctlCommand.GET_BLOCK_SIZE:
            return DiskResult.OK, _ERASE_BLOCK_SIZE
        if command == IoctlCommand.CTRL_SYNC:
            return DiskResult.OK, None
        return DiskResult.PARERR, None