# vt_ChargeStore/core/store.py
from __future__ import annotations
from pathlib import Path
from typing import Callable, Iterable
import logging
import threading

from .model import ChargeCycle
from .period import Period
from .errors import StoreOpenError, StoreClosedError

_LOG = logging.getLogger(__name__)

AppendHook = Callable[[ChargeCycle], None]

LOG_SUFFIX = ".charge.json"


def charge_log_path(vin: str, directory: Path) -> Path:
    return Path(directory) / f"{vin}{LOG_SUFFIX}"


def read_charge_log(path: Path, period: Period | None = None) -> list[ChargeCycle]:
    """
    Scan a charge log line by line, in file order.

    - period given -> keep only cycles whose start_time it contains
    - malformed line -> warning, skipped
    - missing file / read error -> warning, return what was parsed so far
    """
    path = Path(path)
    charges: list[ChargeCycle] = []
    try:
        f = open(path, "rb")
    except FileNotFoundError:
        _LOG.warning("Could not open charge file %s (no charges recorded yet)", path)
        return charges
    except OSError as e:
        _LOG.warning("Could not open charge file %s: %s", path, e)
        return charges

    with f:
        lineno = 0
        try:
            # decoded per line so one bad byte only costs its own line
            for lineno, raw in enumerate(f, start=1):
                try:
                    entry = raw.decode("utf-8").strip()
                    if not entry:
                        continue
                    cycle = ChargeCycle.from_json(entry)
                except ValueError as e:
                    _LOG.warning("Skipping malformed charge record at %s:%d: %s", path.name, lineno, e)
                    continue
                if period is None or period.contains(cycle.start_time):
                    charges.append(cycle)
        except OSError as e:
            _LOG.warning("Problem reading charge cycle data from %s after line %d: %s", path, lineno, e)
    return charges


class ChargeLogStore:
    """
    Append-only log of charge cycles for one vehicle, one JSON object per line.

    The file on disk is the only state; every load() rescans it. A lock
    serializes append/load/close so a load never sees a half-written line
    from this process.
    """

    def __init__(self, vin: str, directory: Path, on_append: Iterable[AppendHook] = ()):
        self.vin = vin
        self.path = charge_log_path(vin, directory)
        self._hooks: list[AppendHook] = list(on_append)
        self._lock = threading.Lock()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._writer = open(self.path, "a", encoding="utf-8")
        except OSError as e:
            raise StoreOpenError(self.path, e) from e
        _LOG.debug("opened charge log %s", self.path)

    @classmethod
    def open(cls, vin: str, directory: Path, on_append: Iterable[AppendHook] = ()) -> "ChargeLogStore":
        return cls(vin, directory, on_append)

    # ---------- lifecycle ----------
    @property
    def closed(self) -> bool:
        return self._writer is None

    def close(self) -> None:
        with self._lock:
            if self._writer is None:
                return
            try:
                self._writer.close()
            finally:
                self._writer = None
            _LOG.debug("closed charge log %s", self.path)

    def __enter__(self) -> "ChargeLogStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._writer is None:
            raise StoreClosedError(f"charge log {self.path} is closed")

    # ---------- operations ----------
    def add_append_hook(self, hook: AppendHook) -> None:
        self._hooks.append(hook)

    def append(self, cycle: ChargeCycle) -> None:
        """
        Write one cycle and run the post-append hooks. Write failures are
        logged, not raised, so the monitoring flow that produced the cycle
        keeps going.
        """
        line = cycle.to_json()
        with self._lock:
            self._check_open()
            try:
                self._writer.write(line + "\n")
                self._writer.flush()
            except OSError as e:
                _LOG.error("Failed to append charge cycle to %s: %s", self.path, e)
                return

        for hook in list(self._hooks):
            try:
                hook(cycle)
            except Exception:
                _LOG.exception("post-append hook %r failed", hook)

    def load(self, period: Period | None = None) -> list[ChargeCycle]:
        with self._lock:
            self._check_open()
            return read_charge_log(self.path, period)
