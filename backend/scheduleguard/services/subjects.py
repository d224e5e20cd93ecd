from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from scheduleguard.schemas.assignment import SubjectRecord
from scheduleguard.schemas.common import SessionKind


@dataclass(frozen=True)
class SubjectRequirement:
    lec_minutes_per_week: int
    lab_minutes_per_week: int

    def required_minutes(self, kind: SessionKind) -> int:
        if kind == SessionKind.lab:
            return self.lab_minutes_per_week
        return self.lec_minutes_per_week

    def components(self) -> tuple[SessionKind, ...]:
        kinds: list[SessionKind] = []
        if self.lec_minutes_per_week > 0:
            kinds.append(SessionKind.lec)
        if self.lab_minutes_per_week > 0:
            kinds.append(SessionKind.lab)
        return tuple(kinds)

    @property
    def total_contact_hours(self) -> float:
        return (self.lec_minutes_per_week + self.lab_minutes_per_week) / 60


def hours_to_minutes(hours: float) -> int:
    return int(round(hours * 60))


def subject_requirement(record: SubjectRecord) -> SubjectRequirement:
    return SubjectRequirement(
        lec_minutes_per_week=hours_to_minutes(record.total_lec_hrs),
        lab_minutes_per_week=hours_to_minutes(record.total_lab_hrs),
    )


def subject_unit_cost(record: SubjectRecord) -> float:
    """Load units charged to a faculty member for teaching `record`.

    Uses the declared total units when the curriculum has them, else the
    weekly contact hours.
    """
    if record.total_units is not None and record.total_units > 0:
        return float(record.total_units)
    return subject_requirement(record).total_contact_hours


def relevant_subjects(subjects: Iterable[SubjectRecord], expertise: Iterable[str]) -> list[SubjectRecord]:
    """Subjects whose expertise area, code or title mentions one of the faculty's expertise tags.

    A faculty member without expertise tags sees every subject.
    """
    tags = [tag.strip().lower() for tag in expertise if tag.strip()]
    subjects = list(subjects)
    if not tags:
        return subjects
    matched: list[SubjectRecord] = []
    for subject in subjects:
        text = f"{subject.expertise or ''} {subject.des_title or ''} {subject.subject_code or ''}".lower()
        if any(tag in text for tag in tags):
            matched.append(subject)
    return matched


def subject_pick_list(
    subjects: Iterable[SubjectRecord],
    expertise: Iterable[str],
    assigned_subject_ids: Iterable[str],
) -> list[SubjectRecord]:
    """Subjects a faculty member can still be given, filtered by expertise."""
    assigned = {str(subject_id) for subject_id in assigned_subject_ids}
    unassigned = [subject for subject in subjects if subject.id not in assigned]
    return relevant_subjects(unassigned, expertise)
