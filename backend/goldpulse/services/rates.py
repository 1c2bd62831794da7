from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from goldpulse.models.enums import Karat
from goldpulse.services.bucketing import as_utc
from goldpulse.services.records import RateSnapshot


@dataclass(frozen=True)
class RateBook:
    """Per-karat snapshots ordered by ``effective_from`` for point-in-time lookups."""

    snapshots: dict[Karat, tuple[RateSnapshot, ...]]

    @classmethod
    def from_snapshots(cls, snapshots: Iterable[RateSnapshot]) -> RateBook:
        grouped: dict[Karat, list[RateSnapshot]] = {karat: [] for karat in Karat}
        for snapshot in snapshots:
            if snapshot.rate_per_gram is None or snapshot.rate_per_gram <= 0:
                continue
            grouped[Karat(snapshot.karat)].append(
                RateSnapshot(
                    karat=Karat(snapshot.karat),
                    rate_per_gram=Decimal(str(snapshot.rate_per_gram)),
                    effective_from=as_utc(snapshot.effective_from),
                )
            )
        return cls(
            snapshots={
                karat: tuple(sorted(rows, key=lambda row: (row.effective_from, row.rate_per_gram)))
                for karat, rows in grouped.items()
            }
        )

    def latest(
        self,
        karat: Karat | None,
        before: datetime,
        *,
        inclusive: bool = False,
    ) -> RateSnapshot | None:
        """Latest snapshot effective before ``before`` (at-or-before when ``inclusive``)."""
        if karat is None:
            return None
        rows = self.snapshots.get(karat, ())
        if not rows:
            return None
        keys = [row.effective_from for row in rows]
        instant = as_utc(before)
        index = bisect_right(keys, instant) if inclusive else bisect_left(keys, instant)
        if index == 0:
            return None
        return rows[index - 1]

    def rate_at(
        self,
        karat: Karat | None,
        before: datetime,
        *,
        inclusive: bool = False,
    ) -> Decimal | None:
        snapshot = self.latest(karat, before, inclusive=inclusive)
        return snapshot.rate_per_gram if snapshot is not None else None
