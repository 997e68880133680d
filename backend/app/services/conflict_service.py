"""Overlap detection for recurring weekly slots.

Two slots conflict when they share a weekday and their ``[start, end)``
intervals overlap. A slot ending exactly when another starts is allowed.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

from app.core.exceptions import DataIntegrityError
from app.schemas.conflict import ConflictDetail, ConflictReport
from app.services.recurrence import WeeklySlot, check_slot_integrity

logger = logging.getLogger(__name__)


def _intervals_overlap(cand_start: int, cand_end: int, ex_start: int, ex_end: int) -> bool:
    # Existing covers the candidate's start.
    if ex_start <= cand_start and ex_end > cand_start:
        return True
    # Existing covers the candidate's end.
    if ex_start < cand_end and ex_end >= cand_end:
        return True
    # Existing sits inside the candidate.
    return ex_start >= cand_start and ex_end <= cand_end


def slots_overlap(candidate: WeeklySlot, existing: WeeklySlot) -> bool:
    cand_day, cand_start, cand_end = check_slot_integrity(candidate)
    ex_day, ex_start, ex_end = check_slot_integrity(existing)
    if cand_day != ex_day:
        return False
    return _intervals_overlap(cand_start, cand_end, ex_start, ex_end)


def find_conflicting_slot(
    candidate: WeeklySlot,
    existing_slots: Iterable[WeeklySlot],
    exclude_slot_id: str | None = None,
) -> WeeklySlot | None:
    """First existing slot that overlaps ``candidate``, or None.

    ``exclude_slot_id`` drops the slot being edited from the comparison set.
    Malformed stored slots are skipped; the candidate itself must be valid.
    """
    cand_day, cand_start, cand_end = check_slot_integrity(candidate)
    for existing in existing_slots:
        if exclude_slot_id is not None and existing.id == exclude_slot_id:
            continue
        try:
            ex_day, ex_start, ex_end = check_slot_integrity(existing)
        except DataIntegrityError as exc:
            logger.warning("Skipping stored slot during conflict check: %s", exc.message)
            continue
        if ex_day != cand_day:
            continue
        if _intervals_overlap(cand_start, cand_end, ex_start, ex_end):
            return existing
    return None


def has_conflict(
    candidate: WeeklySlot,
    existing_slots: Iterable[WeeklySlot],
    exclude_slot_id: str | None = None,
) -> bool:
    return find_conflicting_slot(candidate, existing_slots, exclude_slot_id) is not None


def detect_conflicts(slots: list[WeeklySlot], course_titles: dict[str, str] | None = None) -> ConflictReport:
    """Pairwise report of every overlapping pair among stored slots."""
    course_titles = course_titles or {}
    conflicts: list[ConflictDetail] = []

    slots_by_day: dict[int, list[tuple[int, int, WeeklySlot]]] = defaultdict(list)
    for slot in slots:
        try:
            day, start, end = check_slot_integrity(slot)
        except DataIntegrityError as exc:
            conflicts.append(
                ConflictDetail(
                    id=f"invalid-{slot.id}",
                    conflict_type="invalid_slot",
                    description=exc.message,
                    severity="soft",
                    affected_slots=[str(slot.id)],
                )
            )
            continue
        slots_by_day[int(day)].append((start, end, slot))

    for day in sorted(slots_by_day):
        day_slots = sorted(slots_by_day[day], key=lambda item: (item[0], item[1], str(item[2].id)))
        for i in range(len(day_slots)):
            s1_start, s1_end, s1 = day_slots[i]
            for j in range(i + 1, len(day_slots)):
                s2_start, s2_end, s2 = day_slots[j]
                # Sorted by start, nothing later can overlap s1 either.
                if s2_start >= s1_end:
                    break
                if not _intervals_overlap(s1_start, s1_end, s2_start, s2_end):
                    continue
                title1 = course_titles.get(getattr(s1, "course_id", ""), getattr(s1, "course_id", ""))
                title2 = course_titles.get(getattr(s2, "course_id", ""), getattr(s2, "course_id", ""))
                conflicts.append(
                    ConflictDetail(
                        id=f"overlap-{s1.id}-{s2.id}",
                        conflict_type="slot_overlap",
                        description=(
                            f"{title1} {s1.start_time}-{s1.end_time} overlaps "
                            f"{title2} {s2.start_time}-{s2.end_time}"
                        ),
                        severity="hard",
                        affected_slots=[str(s1.id), str(s2.id)],
                    )
                )

    return ConflictReport(conflicts=conflicts, checked_slots=len(slots))
