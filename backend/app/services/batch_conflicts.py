from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Literal

from app.services.time_ranges import describe_range, normalize_date, ranges_overlap


@dataclass(frozen=True)
class BatchConflict:
    type: Literal["room", "instructor"]
    a_index: int
    b_index: int
    date: str
    resource_id: str
    time_range_a: str
    time_range_b: str

    def message_for(self, index: int) -> str:
        """Message recorded against ``index``, naming the other entry (1-based)."""
        if index == self.a_index:
            other, other_range = self.b_index, self.time_range_b
        else:
            other, other_range = self.a_index, self.time_range_a
        label = "Room" if self.type == "room" else "Instructor"
        return (
            f"{label} conflict with entry {other + 1} on {self.date} ({other_range}) "
            f"for {self.type} {self.resource_id}"
        )


def detect_internal_schedule_conflicts(batch: Sequence[Mapping]) -> list[BatchConflict]:
    """Pairwise overlap scan across uncommitted bulk items.

    Catches two items that each pass the database checks but collide with each
    other. Items may carry their request position under ``index``; otherwise
    the list position is used.
    """
    conflicts: list[BatchConflict] = []

    for i, first in enumerate(batch):
        first_date = normalize_date(first.get("date"))
        first_index = first.get("index", i)

        for j in range(i + 1, len(batch)):
            second = batch[j]
            second_date = normalize_date(second.get("date"))
            if not first_date or not second_date or first_date != second_date:
                continue
            if not ranges_overlap(
                first.get("start_time"), first.get("end_time"), second.get("start_time"), second.get("end_time")
            ):
                continue

            second_index = second.get("index", j)
            range_a = describe_range(first.get("start_time"), first.get("end_time"))
            range_b = describe_range(second.get("start_time"), second.get("end_time"))

            if first.get("room_id") == second.get("room_id"):
                conflicts.append(
                    BatchConflict("room", first_index, second_index, first_date, first.get("room_id"), range_a, range_b)
                )
            if first.get("instructor_id") == second.get("instructor_id"):
                conflicts.append(
                    BatchConflict(
                        "instructor",
                        first_index,
                        second_index,
                        first_date,
                        first.get("instructor_id"),
                        range_a,
                        range_b,
                    )
                )

    return conflicts
