"""Wall-clock bracketing for generation operations."""
from __future__ import annotations
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class MeasurementHandle:
    name: str
    started: float


@dataclass(frozen=True)
class ElapsedMeasurement:
    """Sealed duration of one named operation."""
    name: str
    seconds: float
    ok: bool = True

    @property
    def ms(self) -> int:
        return int(self.seconds * 1000)


class TimingRecorder:
    """
    Collects measurements for a run so they can be reported together.

    Measurements are independent; several may be open at once (e.g. "total"
    around "natural" and "structured").
    """

    def __init__(self) -> None:
        self._measurements: list[ElapsedMeasurement] = []

    def start(self, name: str) -> MeasurementHandle:
        return MeasurementHandle(name=name, started=time.perf_counter())

    def stop(self, handle: MeasurementHandle, ok: bool = True) -> ElapsedMeasurement:
        elapsed = max(0.0, time.perf_counter() - handle.started)
        measurement = ElapsedMeasurement(name=handle.name, seconds=elapsed, ok=ok)
        self._measurements.append(measurement)
        return measurement

    @contextmanager
    def timed(self, name: str) -> Iterator[MeasurementHandle]:
        """Bracket a block; the measurement is marked not-ok if the block raises."""
        handle = self.start(name)
        try:
            yield handle
        except BaseException:
            self.stop(handle, ok=False)
            raise
        self.stop(handle)

    @property
    def measurements(self) -> list[ElapsedMeasurement]:
        return list(self._measurements)

    def get(self, name: str) -> ElapsedMeasurement | None:
        """Latest measurement recorded under ``name``."""
        for m in reversed(self._measurements):
            if m.name == name:
                return m
        return None

    def summary(self) -> list[str]:
        lines = []
        for m in self._measurements:
            suffix = "" if m.ok else " (failed)"
            lines.append(f"{m.name}: {m.seconds:.3f}s{suffix}")
        return lines
