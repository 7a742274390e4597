"""Live classes service layer.

Lifecycle: a class is created `scheduled`, becomes `live` when a teacher or
admin starts it, and may be joined by any authenticated user while it is not
`completed` or `cancelled`.

Errors:
    - ValueError("invalid_<field>") for rejected input
    - LookupError("class_not_found") for unknown classes
    - ClassStateError("class_closed") when a closed class is started or joined
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import List, Optional, Protocol

from ..domain import CLOSED_CLASS_STATUSES, LiveClass

logger = logging.getLogger("codeclass.teaching.classes")

DEFAULT_DURATION_MINUTES = 60


class ClassStateError(Exception):
    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


class ClassesRepoProtocol(Protocol):
    def create_class(
        self,
        *,
        title: str,
        description: Optional[str],
        course: Optional[str],
        schedule: str,
        duration: int,
        meeting_url: Optional[str],
        status: str = "scheduled",
    ) -> LiveClass:
        ...

    def list_classes(self) -> List[LiveClass]:
        ...

    def get_class(self, class_id: str) -> Optional[LiveClass]:
        ...

    def mark_class_live(self, class_id: str, *, started_by: str) -> Optional[LiveClass]:
        ...

    def add_participant(self, class_id: str, user_id: str) -> Optional[LiveClass]:
        ...


def _optional_text(value: object, code: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(code)
    trimmed = value.strip()
    return trimmed or None


def parse_schedule(value: object) -> str:
    """Parse an ISO-8601 datetime and return it normalized to UTC.

    Naive values are rejected; a trailing `Z` is accepted.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("invalid_schedule")
    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError("invalid_schedule") from exc
    if parsed.tzinfo is None:
        raise ValueError("invalid_schedule")
    return parsed.astimezone(timezone.utc).isoformat()


def _normalize_duration(value: object) -> int:
    if value is None:
        return DEFAULT_DURATION_MINUTES
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("invalid_duration")
    if value <= 0:
        raise ValueError("invalid_duration")
    return value


@dataclass
class ClassesService:
    repo: ClassesRepoProtocol

    def create_class(
        self,
        *,
        title: object,
        schedule: object,
        description: object = None,
        course: object = None,
        duration: object = None,
        meeting_url: object = None,
    ) -> LiveClass:
        title_text = _optional_text(title, "invalid_title")
        if not title_text or len(title_text) > 200:
            raise ValueError("invalid_title")
        live = self.repo.create_class(
            title=title_text,
            description=_optional_text(description, "invalid_description"),
            course=_optional_text(course, "invalid_course"),
            schedule=parse_schedule(schedule),
            duration=_normalize_duration(duration),
            meeting_url=_optional_text(meeting_url, "invalid_meeting_url"),
        )
        logger.info("Class created id=%s schedule=%s", live.id, live.schedule)
        return live

    def list_classes(self, user_id: str, role: str) -> List[LiveClass]:
        return self.repo.list_classes()

    def get_class(self, class_id: str) -> LiveClass:
        live = self.repo.get_class(class_id)
        if live is None:
            raise LookupError("class_not_found")
        return live

    def start_class(self, class_id: str, user_id: str) -> LiveClass:
        live = self.get_class(class_id)
        if live.status in CLOSED_CLASS_STATUSES:
            raise ClassStateError("class_closed")
        if live.status == "live":
            return live
        started = self.repo.mark_class_live(class_id, started_by=user_id)
        if started is None:
            raise LookupError("class_not_found")
        if started.status in CLOSED_CLASS_STATUSES:
            raise ClassStateError("class_closed")
        logger.info("Class started id=%s by=%s", class_id, user_id)
        return started

    def join_class(self, class_id: str, user_id: str) -> LiveClass:
        live = self.get_class(class_id)
        if live.status in CLOSED_CLASS_STATUSES:
            raise ClassStateError("class_closed")
        joined = self.repo.add_participant(class_id, user_id)
        if joined is None:
            raise LookupError("class_not_found")
        return joined
