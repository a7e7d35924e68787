import logging
from datetime import datetime, timezone
from unittest import mock

import pytest

from app.core.errors import NotFound, StoreReadFailure, StoreWriteFailure
from app.modules.patients.repository import PatientRepository, one_month_before
from app.modules.records.schemas import EventKind
from app.platform.adapters.store_memory import InMemoryDocumentStore
from conftest import FIXED_NOW, jane_doe, run


def test_create_then_get_round_trip(repo):
    created = run(repo.create_patient(jane_doe(race="Asian", insurance={"provider": "Acme", "memberId": "A1"})))
    assert created["active"] is True
    assert created["createdAt"] == created["updatedAt"] == FIXED_NOW.isoformat()

    fetched = run(repo.get_patient(created["id"]))
    assert fetched == created
    assert fetched["insurance"] == {"provider": "Acme", "memberId": "A1"}


def test_create_preserves_symptom_assessment(repo):
    symptoms = [{"id": "1", "symptom": "Cough", "severity": "mild", "duration": "3 days"}]
    created = run(repo.create_patient(jane_doe(hasSymptomAssessment=True, initialSymptoms=symptoms)))
    assert run(repo.get_patient(created["id"]))["initialSymptoms"] == symptoms


def test_create_wraps_store_errors(repo):
    with mock.patch.object(repo.store, "add", side_effect=RuntimeError("disk full")):
        with pytest.raises(StoreWriteFailure) as exc:
            run(repo.create_patient(jane_doe()))
    assert exc.value.message == "Failed to create patient: disk full"


def test_update_merges_and_missing_raises(repo):
    pid = run(repo.create_patient(jane_doe()))["id"]
    updated = run(repo.update_patient(pid, {"gender": "other"}))
    assert updated["gender"] == "other"
    assert updated["birthDate"] == "1980-05-12"

    with pytest.raises(NotFound):
        run(repo.update_patient("missing", {"gender": "male"}))


def test_soft_delete_hides_from_listing(repo):
    keep = run(repo.create_patient(jane_doe()))["id"]
    gone = run(repo.create_patient(jane_doe(name=[{"given": ["John"], "family": "Roe"}])))["id"]

    assert run(repo.delete_patient(gone)) is True
    assert [p["id"] for p in run(repo.get_all_patients())] == [keep]

    # still retrievable by id, flagged inactive
    deleted = run(repo.get_patient(gone))
    assert deleted["active"] is False
    assert deleted["deletedAt"] == FIXED_NOW.isoformat()

    with pytest.raises(NotFound):
        run(repo.delete_patient("missing"))


def test_get_patient_missing_and_failing(repo):
    with pytest.raises(NotFound):
        run(repo.get_patient("nope"))
    with mock.patch.object(repo.store, "get", side_effect=ConnectionError("down")):
        with pytest.raises(StoreReadFailure):
            run(repo.get_patient("any"))


def _seed_patients(store):
    for i, created in enumerate(["2024-01-01T00:00:00+00:00", "2024-03-01T00:00:00+00:00", "2024-02-01T00:00:00+00:00"]):
        run(store.add("patients", {"name": [{"given": [f"P{i}"], "family": "X"}], "createdAt": created, "active": True}))


def test_listing_newest_first(repo, store):
    _seed_patients(store)
    names = [p["name"][0]["given"][0] for p in run(repo.get_all_patients())]
    assert names == ["P1", "P2", "P0"]


def test_listing_falls_back_when_ordering_unavailable(caplog):
    store = InMemoryDocumentStore(supports_ordering=False)
    repo = PatientRepository(store)
    _seed_patients(store)
    with caplog.at_level(logging.WARNING):
        names = [p["name"][0]["given"][0] for p in run(repo.get_all_patients())]
    assert names == ["P1", "P2", "P0"]
    assert "Ordering not supported" in caplog.text


def test_search_is_case_insensitive_substring(repo):
    run(repo.create_patient(jane_doe()))
    run(repo.create_patient(jane_doe(name=[{"given": ["John"], "family": "Smith"}])))
    assert [p["name"][0]["family"] for p in run(repo.search_patients("DOE"))] == ["Doe"]
    assert len(run(repo.search_patients(""))) == 2
    assert run(repo.search_patients("zzz")) == []


def test_category_accessors_sorted_and_scoped(repo, records):
    pid = run(repo.create_patient(jane_doe()))["id"]
    other = run(repo.create_patient(jane_doe()))["id"]
    run(records.add_medication(pid, {"display": "Old", "authoredOn": "2020-01-01"}))
    run(records.add_medication(pid, {"display": "New", "effectivePeriod": {"start": "2024-01-01"}}))
    run(records.add_medication(other, {"display": "Someone else's"}))

    meds = run(repo.get_patient_medications(pid))
    assert [m["display"] for m in meds] == ["New", "Old"]
    assert all(m["patientId"] == pid for m in meds)


def test_category_failure_is_isolated(repo, records, caplog):
    pid = run(repo.create_patient(jane_doe()))["id"]
    run(records.add_encounter(pid, {"type": "Checkup"}))
    run(records.add_condition(pid, {"display": "Asthma"}))

    real_query = repo.store.query

    async def flaky_query(collection, *args, **kwargs):
        if collection == "conditions":
            raise ConnectionError("index missing")
        return await real_query(collection, *args, **kwargs)

    with mock.patch.object(repo.store, "query", side_effect=flaky_query):
        with caplog.at_level(logging.WARNING):
            all_records = run(repo.get_patient_records(pid))
        result = run(repo.fetch_category(EventKind.CONDITION, pid))

    assert all_records.conditions == []
    assert [e["type"] for e in all_records.encounters] == ["Checkup"]
    assert not result.ok and isinstance(result.error, ConnectionError)
    assert "returning empty list" in caplog.text


def test_add_record_requires_existing_patient(records):
    with pytest.raises(NotFound):
        run(records.add_observation("missing", {"display": "BP"}))


def test_add_record_stamps_fields(repo, records):
    pid = run(repo.create_patient(jane_doe()))["id"]
    obs = run(records.add_observation(pid, {"display": "BP", "valueString": "120/80"}))
    assert obs["patientId"] == pid
    assert obs["createdAt"] == obs["updatedAt"] == FIXED_NOW.isoformat()
    assert run(repo.get_patient_observations(pid)) == [obs]


def test_stats_over_active_patients(repo):
    run(repo.create_patient(jane_doe()))
    run(repo.create_patient(jane_doe(gender="male", birthDate="2015-01-01")))
    gone = run(repo.create_patient(jane_doe(gender="other")))["id"]
    run(repo.delete_patient(gone))

    stats = run(repo.get_patient_stats())
    assert stats["total"] == 2
    assert stats["byGender"] == {"male": 1, "female": 1, "other": 0}
    assert stats["newThisMonth"] == 2
    assert sum(stats["byAgeGroup"].values()) == 2


def test_stats_zeroed_on_store_failure(repo):
    with mock.patch.object(repo.store, "query", side_effect=ConnectionError("down")):
        stats = run(repo.get_patient_stats())
    assert stats["total"] == 0
    assert stats["byAgeGroup"] == {"0-18": 0, "19-35": 0, "36-50": 0, "51-65": 0, "65+": 0}


def test_update_ignores_repository_managed_fields(repo):
    pid = run(repo.create_patient(jane_doe()))["id"]
    run(repo.delete_patient(pid))

    updated = run(repo.update_patient(pid, {
        "id": "other", "active": True, "createdAt": "1900-01-01", "deletedAt": None, "updatedAt": "1900-01-01",
        "maritalStatus": "single",
    }))
    assert updated["id"] == pid
    assert updated["active"] is False
    assert updated["createdAt"] == FIXED_NOW.isoformat()
    assert updated["deletedAt"] == FIXED_NOW.isoformat()
    assert updated["updatedAt"] == FIXED_NOW.isoformat()
    assert updated["maritalStatus"] == "single"
    assert run(repo.get_all_patients()) == []


@pytest.mark.parametrize("now,expected", [
    (datetime(2024, 6, 15, tzinfo=timezone.utc), datetime(2024, 5, 15, tzinfo=timezone.utc)),
    (datetime(2024, 3, 31, tzinfo=timezone.utc), datetime(2024, 2, 29, tzinfo=timezone.utc)),
    (datetime(2024, 1, 10, tzinfo=timezone.utc), datetime(2023, 12, 10, tzinfo=timezone.utc)),
])
def test_one_month_before(now, expected):
    assert one_month_before(now) == expected


def test_new_this_month_uses_calendar_month(store):
    # July 31 minus one calendar month is June 30; a 30-day window would start July 1
    repo = PatientRepository(store, clock=lambda: datetime(2024, 7, 31, 12, 0, tzinfo=timezone.utc))
    run(store.add("patients", {"createdAt": "2024-06-30T18:00:00+00:00", "active": True}))
    run(store.add("patients", {"createdAt": "2024-06-29T00:00:00+00:00", "active": True}))
    assert run(repo.get_patient_stats())["newThisMonth"] == 1
