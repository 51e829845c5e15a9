"""Monitored areas and the per-area state store.

The AreaStore holds exactly one AreaStatus per configured area for the
lifetime of the process. Entries are created at startup and replaced
by the reconciler, never added or removed afterwards.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Iterator


@dataclass(frozen=True)
class MonitoredArea:
    """An administrative area whose intensity is tracked.

    Attributes:
        code: Upstream area code
        name: Human-readable area name
    """
    code: int
    name: str


@dataclass(frozen=True)
class AreaStatus:
    """Latest known shaking for one monitored area.

    Attributes:
        code: Area code
        name: Area name
        pga: Peak ground acceleration in gal
        intensity: Integer intensity level 0-9
        intensity_text: Intensity as displayed by upstream
        last_update: When the values last changed (None if never)
    """
    code: int
    name: str
    pga: float = 0.0
    intensity: int = 0
    intensity_text: str = "0"
    last_update: datetime | None = None

    @classmethod
    def initial(cls, area: MonitoredArea) -> "AreaStatus":
        """Zero status used before any reading arrives."""
        return cls(code=area.code, name=area.name)

    def with_reading(
        self,
        pga: float,
        intensity: int,
        intensity_text: str,
        last_update: datetime,
    ) -> "AreaStatus":
        """Return a copy carrying a new reading."""
        return replace(
            self,
            pga=pga,
            intensity=intensity,
            intensity_text=intensity_text,
            last_update=last_update,
        )


class AreaStore:
    """Authoritative per-area snapshot.

    Only the reconciler writes to the store, and it does so from the
    poll loop, so there is a single writer at any time.
    """

    def __init__(self, areas: Iterable[MonitoredArea]) -> None:
        self._areas: dict[int, MonitoredArea] = {}
        self._status: dict[int, AreaStatus] = {}

        for area in areas:
            if area.code in self._areas:
                raise ValueError(f"Duplicate monitored area code: {area.code}")
            self._areas[area.code] = area
            self._status[area.code] = AreaStatus.initial(area)

    def __contains__(self, code: object) -> bool:
        return code in self._status

    def __len__(self) -> int:
        return len(self._status)

    def __iter__(self) -> Iterator[AreaStatus]:
        return iter(self.snapshot())

    @property
    def codes(self) -> tuple[int, ...]:
        """Configured area codes in configuration order."""
        return tuple(self._status)

    def area(self, code: int) -> MonitoredArea:
        """Return the configured area for a code."""
        return self._areas[code]

    def get(self, code: int) -> AreaStatus:
        """Return the current status for an area.

        Raises:
            KeyError: If the code is not a monitored area
        """
        return self._status[code]

    def update(self, status: AreaStatus) -> None:
        """Replace the status for an already-monitored area.

        Raises:
            KeyError: If the status belongs to an area that is not monitored
        """
        if status.code not in self._status:
            raise KeyError(f"Area {status.code} is not monitored")
        self._status[status.code] = status

    def snapshot(self) -> list[AreaStatus]:
        """Return all statuses in configuration order.

        AreaStatus is immutable, so the returned list can be handed to
        other components without copying entries.
        """
        return list(self._status.values())
