"""Remote key derivation."""
import time
from datetime import datetime, timezone
from typing import Callable


class KeyGenerator:
    """
    Generate upload keys of the form ``{owner}/{stamp}-{filename}``.

    Stamps are fixed-width UTC timestamps with microsecond precision, so
    sorting keys lexicographically sorts them by submission time. The
    generator never hands out the same stamp twice: when the clock has not
    moved past the previous stamp it advances by one microsecond.
    """

    def __init__(self, owner: str, clock: Callable[[], int] = time.time_ns):
        if not owner:
            raise ValueError("owner must not be empty")
        self._owner = owner.strip("/")
        self._clock = clock
        self._last_micros = 0

    @property
    def owner(self) -> str:
        return self._owner

    def next_stamp(self) -> str:
        micros = self._clock() // 1000
        if micros <= self._last_micros:
            micros = self._last_micros + 1
        self._last_micros = micros
        return format_stamp(micros)

    def make_key(self, filename: str) -> str:
        return f"{self._owner}/{self.next_stamp()}-{filename}"


def format_stamp(micros: int) -> str:
    """Format microseconds since the epoch as ``YYYYMMDDTHHMMSS.ffffffZ``."""
    seconds, fraction = divmod(micros, 1_000_000)
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return f"{moment:%Y%m%dT%H%M%S}.{fraction:06d}Z"
