from __future__ import annotations

from datetime import date

from boq_progress.models.records import Activity
from boq_progress.repos.kpi_repo import KpiRepo
from boq_progress.repos.record_store import InMemoryRecordStore, RecordStoreError
from boq_progress.services.plan_sync import generate_plan, summarize_plan, sync_plan


def _planned_rows(store, name="Excavation"):
    return KpiRepo(store).fetch_generated_plan("P1-A", name)


def test_generate_plan_rows(excavation, five_day_week):
    records = generate_plan(excavation, five_day_week)
    assert len(records) == 10
    assert all(record.is_planned for record in records)
    assert sum(record.quantity for record in records) == 10
    first = records[0]
    assert first.day == "Day 1 - Monday"
    assert first.target_date == first.activity_date == date(2024, 1, 1)
    assert first.project_full_code == "P1-A"
    assert first.section == "Zone 1"
    assert first.unit == "m3"
    assert records[-1].day == "Day 10 - Friday"


def test_generate_plan_defaults(five_day_week):
    activity = Activity(
        project_code="P7",
        activity_name="Formwork",
        division="Civil",
        planned_units=3,
        start=date(2024, 1, 1),
        deadline=date(2024, 1, 3),
    )
    records = generate_plan(activity, five_day_week)
    assert [record.project_full_code for record in records] == ["P7"] * 3
    assert {record.section for record in records} == {"Civil"}
    assert {record.unit for record in records} == {"No."}


def test_generate_plan_requires_dates_and_units(excavation, five_day_week):
    assert generate_plan(excavation.model_copy(update={"deadline": None}), five_day_week) == []
    assert generate_plan(excavation.model_copy(update={"start": None}), five_day_week) == []
    assert generate_plan(excavation.model_copy(update={"planned_units": 0}), five_day_week) == []


def test_summarize_plan(excavation, five_day_week):
    summary = summarize_plan(generate_plan(excavation, five_day_week))
    assert summary.total_quantity == 10
    assert summary.number_of_days == 10
    assert summary.average_per_day == 1
    assert (summary.start_date, summary.end_date) == (date(2024, 1, 1), date(2024, 1, 12))
    assert summarize_plan([]).number_of_days == 0


def test_first_sync_inserts_every_day(store, excavation, five_day_week):
    result = sync_plan(KpiRepo(store), excavation, None, five_day_week)
    assert (result.added, result.updated, result.deleted) == (10, 0, 0)
    assert len(_planned_rows(store)) == 10


def test_shortened_range_deletes_surplus_rows(store, excavation, five_day_week):
    repo = KpiRepo(store)
    sync_plan(repo, excavation, None, five_day_week)

    shortened = excavation.model_copy(update={"deadline": date(2024, 1, 9)})
    result = sync_plan(repo, shortened, None, five_day_week)

    assert (result.added, result.updated, result.deleted) == (0, 7, 3)
    rows = _planned_rows(store)
    assert [row.quantity for row in rows] == [2, 2, 2, 1, 1, 1, 1]
    assert rows[-1].target_date == date(2024, 1, 9)


def test_extended_range_adds_rows(store, excavation, five_day_week):
    repo = KpiRepo(store)
    sync_plan(repo, excavation.model_copy(update={"deadline": date(2024, 1, 5)}), None, five_day_week)
    result = sync_plan(repo, excavation, None, five_day_week)
    assert (result.added, result.updated, result.deleted) == (5, 5, 0)
    assert len(_planned_rows(store)) == 10


def test_resync_is_idempotent(store, excavation, five_day_week):
    repo = KpiRepo(store)
    sync_plan(repo, excavation, None, five_day_week)
    before = _planned_rows(store)

    result = sync_plan(repo, excavation, None, five_day_week)

    assert (result.added, result.updated, result.deleted) == (0, 10, 0)
    after = _planned_rows(store)
    assert [row.model_dump() for row in after] == [row.model_dump() for row in before]


def test_rename_moves_rows_without_duplicates(store, excavation, five_day_week):
    repo = KpiRepo(store)
    sync_plan(repo, excavation, None, five_day_week)

    renamed = excavation.model_copy(update={"activity_name": "Bulk Excavation"})
    result = sync_plan(repo, renamed, "Excavation", five_day_week)

    assert (result.added, result.updated, result.deleted) == (0, 10, 0)
    assert _planned_rows(store) == []
    assert len(_planned_rows(store, "Bulk Excavation")) == 10


def test_sync_leaves_actual_rows_alone(store, excavation, five_day_week):
    store.insert(
        "kpi_records",
        [{"input_type": "Actual", "project_full_code": "P1-A", "activity_name": "Excavation", "quantity": 4}],
    )
    repo = KpiRepo(store)
    sync_plan(repo, excavation, None, five_day_week)
    sync_plan(repo, excavation.model_copy(update={"planned_units": 0}), None, five_day_week)

    remaining = store.query("kpi_records")
    assert len(remaining) == 1
    assert remaining[0]["input_type"] == "Actual"


class _FailingDeletes(InMemoryRecordStore):
    def delete(self, table, row_id):
        raise RecordStoreError("delete refused")


def test_failed_writes_are_skipped_and_not_counted(excavation, five_day_week, caplog):
    store = _FailingDeletes()
    repo = KpiRepo(store)
    sync_plan(repo, excavation, None, five_day_week)

    shortened = excavation.model_copy(update={"deadline": date(2024, 1, 9)})
    with caplog.at_level("ERROR"):
        result = sync_plan(repo, shortened, None, five_day_week)

    assert (result.added, result.updated, result.deleted) == (0, 7, 0)
    assert len(_planned_rows(store)) == 10
    assert "sync_plan delete failed" in caplog.text
