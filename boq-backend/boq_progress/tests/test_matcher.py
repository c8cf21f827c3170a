from __future__ import annotations

import pytest

from boq_progress.models.records import Activity, KPIRecord, Project
from boq_progress.services.matcher import (
    belongs_to_project,
    normalize_zone,
    project_codes_match,
    resolve_activity,
)


@pytest.mark.parametrize(
    "left,right,expected",
    [
        ("P4110", "P4110", True),
        ("p4110", " P4110 ", True),
        ("P4110", "P4110-P", False),
        ("P4110-P", "P4110", False),
        ("P4110-P", "P4110-Q", False),
        ("P41", "P4110", True),
        ("P4110", "P41", True),
        ("P4110", "P5067", False),
        ("", "P4110", False),
        (None, None, False),
    ],
)
def test_project_codes_match(left, right, expected):
    assert project_codes_match(left, right) is expected


def test_normalize_zone_strips_project_prefix():
    assert normalize_zone("P5067 - Zone A", "P5067") == "ZONE A"
    assert normalize_zone("p5067 zone a", "P5067") == "ZONE A"
    assert normalize_zone("Zone A", "P5067") == "ZONE A"
    assert normalize_zone("P5067", "P5067") == "P5067"
    assert normalize_zone(None, "P5067") == ""


def _activities():
    return [
        Activity(project_code="P1", project_full_code="P1-A", activity_name="Excavation", zone="Zone 1", rate=10),
        Activity(project_code="P1", project_full_code="P1-B", activity_name="Excavation", zone="Zone 2", rate=20),
        Activity(project_code="P1", project_full_code="P1-B", activity_name="Backfill", zone="Zone 2", rate=30),
    ]


def test_full_code_and_zone_wins():
    record = KPIRecord(project_code="P1", project_full_code="P1-B", activity_name="excavation", zone="P1 - Zone 2")
    assert resolve_activity(record, _activities()).rate == 20


def test_full_code_without_zone():
    record = KPIRecord(project_full_code="P1-B", activity_name="Excavation")
    assert resolve_activity(record, _activities()).rate == 20


def test_bare_code_and_zone_when_full_code_is_unknown():
    record = KPIRecord(project_code="P1", project_full_code="P1-X", activity_name="Excavation", zone="Zone 2")
    assert resolve_activity(record, _activities()).rate == 20


def test_bare_code_only_takes_first_candidate():
    record = KPIRecord(project_code="P1", activity_name="Excavation")
    assert resolve_activity(record, _activities()).rate == 10


def test_name_only_fallback():
    record = KPIRecord(activity_name="Backfill")
    assert resolve_activity(record, _activities()).rate == 30


def test_unknown_name_resolves_to_none():
    assert resolve_activity(KPIRecord(project_code="P1", activity_name="Paving"), _activities()) is None
    assert resolve_activity(KPIRecord(project_code="P1", activity_name=""), _activities()) is None


def test_project_scope_limits_candidates():
    record = KPIRecord(activity_name="Excavation")
    project = Project(project_code="P1", project_full_code="P1-B")
    assert resolve_activity(record, _activities(), project).rate == 20
    assert resolve_activity(record, _activities(), Project(project_code="P9")) is None


def test_sub_project_records_stay_with_their_project():
    parent = Project(project_code="P4110")
    sub = Project(project_code="P4110", project_full_code="P4110-P")
    record = KPIRecord(project_code="P4110", project_full_code="P4110-P")
    assert belongs_to_project(record, sub)
    assert not belongs_to_project(record, parent)
