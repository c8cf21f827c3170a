from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..models.records import Activity, KPIRecord, Project

logger = logging.getLogger(__name__)


CODE_SEPARATOR = "-"


def normalize_code(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def normalize_name(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def normalize_zone(zone: Optional[str], project_code: Optional[str] = None) -> str:
    """Upper-case a zone and drop a leading project code ("P5067 - ZONE A" -> "ZONE A")."""
    normalised = normalize_code(zone)
    code = normalize_code(project_code)
    if normalised and code:
        stripped = re.sub(rf"^{re.escape(code)}(\s*-\s*|\s+)", "", normalised).strip()
        if stripped:
            return stripped
    return normalised


def project_codes_match(left: Optional[str], right: Optional[str]) -> bool:
    """Compare two project codes.

    A code carrying the separator names a specific sub-project, so it only ever
    matches itself: ``P4110`` and ``P4110-P`` are different projects. Codes
    without a separator are legacy partial codes and match by prefix in either
    direction.
    """
    a = normalize_code(left)
    b = normalize_code(right)
    if not a or not b:
        return False
    if a == b:
        return True
    if CODE_SEPARATOR in a or CODE_SEPARATOR in b:
        return False
    return a.startswith(b) or b.startswith(a)


def record_project_key(item) -> str:
    return normalize_code(getattr(item, "project_full_code", "") or getattr(item, "project_code", ""))


def belongs_to_project(item, project: Project) -> bool:
    return project_codes_match(record_project_key(item), record_project_key(project))


def zones_match(left: str, right: str) -> bool:
    if not left or not right:
        return False
    return left == right or left in right or right in left


def _activity_full_code(activity: Activity) -> str:
    return normalize_code(activity.project_full_code or activity.project_code)


def _activity_zone(activity: Activity) -> str:
    return normalize_zone(activity.zone, activity.project_code)


def _ladder(record: KPIRecord) -> List[Tuple[int, Callable[[Activity], bool]]]:
    full_code = normalize_code(record.project_full_code)
    bare_code = normalize_code(record.project_code)
    zone = normalize_zone(record.zone, record.project_code)

    rungs: List[Tuple[int, Callable[[Activity], bool]]] = []
    if full_code and zone:
        rungs.append(
            (1, lambda a: project_codes_match(_activity_full_code(a), full_code) and zones_match(_activity_zone(a), zone))
        )
    if full_code:
        rungs.append((2, lambda a: project_codes_match(_activity_full_code(a), full_code)))
    if bare_code and zone:
        rungs.append(
            (3, lambda a: project_codes_match(a.project_code, bare_code) and zones_match(_activity_zone(a), zone))
        )
    if bare_code:
        rungs.append((4, lambda a: project_codes_match(a.project_code, bare_code)))
    rungs.append((5, lambda a: True))
    return rungs


def resolve_activity(
    record: KPIRecord,
    candidates: Iterable[Activity],
    project: Optional[Project] = None,
) -> Optional[Activity]:
    """Find the contract activity a KPI row was recorded against.

    Rules are tried from most to least specific and the first hit wins;
    ``None`` means no rate information is available for the record.
    """
    name = normalize_name(record.activity_name)
    if not name:
        return None
    pool: Sequence[Activity] = [
        a
        for a in candidates
        if normalize_name(a.activity_name) == name and (project is None or belongs_to_project(a, project))
    ]
    if not pool:
        return None
    for level, rule in _ladder(record):
        for activity in pool:
            if rule(activity):
                if level > 2:
                    logger.debug(
                        "resolve_activity name=%s project=%s matched at level=%s",
                        record.activity_name,
                        record.project_key,
                        level,
                    )
                return activity
    return None
