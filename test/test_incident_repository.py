"""
Unit tests for IncidentRepository.

Tests creation defaults, region and reporter queries, status changes,
the comment thread and assignment.
"""

import threading
import unittest
from datetime import timedelta

import pytest

from collection_store import INCIDENTS, CollectionStore, InMemoryKeyValueBackend
from exceptions import ConcurrencyError, NotFoundError, ValidationError
from incident_repository import IncidentRepository
from models import IncidentStatus, IncidentType
from conftest import make_incident_input

PNG_DATA_URL = "data:image/png;base64,iVBORw0KGgo="


class TestIncidentCreation(unittest.TestCase):
    """Test cases for IncidentRepository.create."""

    def setUp(self):
        """Set up test fixtures."""
        self.store = CollectionStore(InMemoryKeyValueBackend())
        self.repo = IncidentRepository(self.store)

    def test_create_sets_defaults(self):
        """New incidents start at ALERT_RECEIVED with no comments."""
        incident = self.repo.create(make_incident_input())

        self.assertTrue(incident.id)
        self.assertEqual(incident.status, IncidentStatus.ALERT_RECEIVED)
        self.assertEqual(incident.comments, [])
        self.assertIsNone(incident.assigned_admin_id)
        self.assertIsNotNone(incident.created_at.tzinfo)

    def test_create_persists_camel_case_record(self):
        """The stored record uses the persisted field names."""
        incident = self.repo.create(make_incident_input(userId="u1", victimCount=2, dangerLevel=4))

        stored = self.store.get_all(INCIDENTS)
        self.assertEqual(len(stored), 1)
        self.assertEqual(stored[0]["id"], incident.id)
        self.assertEqual(stored[0]["subType"], "FIRE")
        self.assertEqual(stored[0]["userId"], "u1")
        self.assertEqual(stored[0]["victimCount"], 2)
        self.assertEqual(stored[0]["dangerLevel"], 4)
        self.assertEqual(stored[0]["status"], "ALERT_RECEIVED")
        self.assertIn("createdAt", stored[0])

    def test_ids_are_unique(self):
        """Each created incident gets a distinct id."""
        ids = {self.repo.create(make_incident_input()).id for _ in range(20)}
        self.assertEqual(len(ids), 20)

    def test_get_all_preserves_insertion_order(self):
        """Records come back in the order they were created."""
        first = self.repo.create(make_incident_input(description="first"))
        second = self.repo.create(make_incident_input(description="second"))
        self.assertEqual([i.id for i in self.repo.get_all()], [first.id, second.id])

    def test_empty_description_rejected(self):
        """Blank descriptions are a validation error and nothing is stored."""
        with self.assertRaises(ValidationError) as ctx:
            self.repo.create(make_incident_input(description="   "))
        self.assertIn("description", ctx.exception.field_errors)
        self.assertEqual(self.repo.get_all(), [])

    def test_sub_type_must_match_type(self):
        """A civil sub type cannot be used for a vital emergency."""
        with self.assertRaises(ValidationError):
            self.repo.create(make_incident_input(subType="POTHOLE"))

    def test_civil_problem_accepts_civil_sub_type(self):
        """Civil problems take their own sub types."""
        incident = self.repo.create(make_incident_input(type="CIVIL_PROBLEM", subType="POTHOLE"))
        self.assertEqual(incident.type, IncidentType.CIVIL_PROBLEM)

    def test_civil_problem_rejects_severity_fields(self):
        """Victim count and danger level only apply to vital emergencies."""
        with self.assertRaises(ValidationError):
            self.repo.create(make_incident_input(type="CIVIL_PROBLEM", subType="POTHOLE", dangerLevel=3))

    def test_unknown_region_rejected(self):
        """Regions must come from the registry."""
        with self.assertRaises(ValidationError):
            self.repo.create(make_incident_input(region="Atlantis"))

    def test_coordinates_out_of_range_rejected(self):
        """Latitude must be within [-90, 90]."""
        with self.assertRaises(ValidationError):
            self.repo.create(make_incident_input(latitude=120.0))

    def test_danger_level_range(self):
        """Danger level is between 1 and 5."""
        with self.assertRaises(ValidationError):
            self.repo.create(make_incident_input(dangerLevel=6))

    def test_attachments_are_validated(self):
        """Attachments must be image, video or audio data URLs."""
        incident = self.repo.create(make_incident_input(attachments=[PNG_DATA_URL]))
        self.assertEqual(incident.attachments, [PNG_DATA_URL])

        with self.assertRaises(ValidationError):
            self.repo.create(make_incident_input(attachments=["data:application/pdf;base64,AAAA"]))
        with self.assertRaises(ValidationError):
            self.repo.create(make_incident_input(attachments=["not a data url"]))

    def test_blank_address_is_dropped(self):
        """A whitespace address is stored as absent."""
        incident = self.repo.create(make_incident_input(address="  "))
        self.assertIsNone(incident.address)


class TestIncidentQueries(unittest.TestCase):
    """Test cases for region and reporter queries."""

    def setUp(self):
        """Set up test fixtures."""
        self.repo = IncidentRepository(CollectionStore(InMemoryKeyValueBackend()))
        self.casa = self.repo.create(make_incident_input(region="Casablanca-Settat", userId="u1"))
        self.rabat = self.repo.create(make_incident_input(region="Rabat-Salé-Kénitra", userId="u2"))
        self.no_region = self.repo.create(make_incident_input(region=None, userId="u1"))

    def test_get_by_region_exact_match(self):
        """Only incidents of the requested region are returned."""
        result = self.repo.get_by_region("Casablanca-Settat")
        self.assertEqual([i.id for i in result], [self.casa.id])

    def test_incident_without_region_never_matches(self):
        """Incidents without a region are excluded from every region query."""
        for region in ("Casablanca-Settat", "Rabat-Salé-Kénitra", ""):
            ids = [i.id for i in self.repo.get_by_region(region)]
            self.assertNotIn(self.no_region.id, ids)

    def test_get_by_user_id(self):
        """Incidents are filtered by reporter."""
        result = self.repo.get_by_user_id("u1")
        self.assertEqual({i.id for i in result}, {self.casa.id, self.no_region.id})
        self.assertEqual(self.repo.get_by_user_id("nobody"), [])

    def test_get_by_id(self):
        """Lookups return the record or None."""
        self.assertEqual(self.repo.get_by_id(self.rabat.id).id, self.rabat.id)
        self.assertIsNone(self.repo.get_by_id("missing"))


class TestIncidentMutations(unittest.TestCase):
    """Test cases for status, comments and assignment."""

    def setUp(self):
        """Set up test fixtures."""
        self.store = CollectionStore(InMemoryKeyValueBackend())
        self.repo = IncidentRepository(self.store)
        self.incident = self.repo.create(make_incident_input())

    def test_update_status(self):
        """Status is overwritten and persisted."""
        updated = self.repo.update_status(self.incident.id, IncidentStatus.IN_PROGRESS)
        self.assertEqual(updated.status, IncidentStatus.IN_PROGRESS)
        self.assertEqual(self.repo.get_by_id(self.incident.id).status, IncidentStatus.IN_PROGRESS)

    def test_update_status_accepts_string(self):
        """Status can be given by name."""
        updated = self.repo.update_status(self.incident.id, "RESOLVED")
        self.assertTrue(updated.is_resolved)

    def test_backward_status_allowed_by_default(self):
        """Any state may be set from any other."""
        self.repo.update_status(self.incident.id, IncidentStatus.RESOLVED)
        updated = self.repo.update_status(self.incident.id, IncidentStatus.ALERT_RECEIVED)
        self.assertEqual(updated.status, IncidentStatus.ALERT_RECEIVED)

    def test_backward_status_rejected_when_forward_only(self):
        """Forward-only mode refuses to move an incident back."""
        repo = IncidentRepository(self.store, enforce_forward_status=True)
        repo.update_status(self.incident.id, IncidentStatus.IN_PROGRESS)
        with self.assertRaises(ValidationError):
            repo.update_status(self.incident.id, IncidentStatus.RESPONDERS_EN_ROUTE)
        self.assertEqual(repo.get_by_id(self.incident.id).status, IncidentStatus.IN_PROGRESS)
        # Same state and forward moves remain allowed
        repo.update_status(self.incident.id, IncidentStatus.IN_PROGRESS)
        repo.update_status(self.incident.id, IncidentStatus.RESOLVED)

    def test_unknown_status_rejected(self):
        """Unknown status names are a validation error."""
        with self.assertRaises(ValidationError):
            self.repo.update_status(self.incident.id, "CLOSED")

    def test_update_status_missing_incident(self):
        """Unknown ids raise NotFoundError and leave the store unchanged."""
        before = self.store.get_all(INCIDENTS)
        with self.assertRaises(NotFoundError):
            self.repo.update_status("missing", IncidentStatus.RESOLVED)
        self.assertEqual(self.store.get_all(INCIDENTS), before)

    def test_status_change_keeps_other_records(self):
        """Updating one incident leaves the others untouched."""
        other = self.repo.create(make_incident_input(description="other"))
        self.repo.update_status(self.incident.id, IncidentStatus.RESOLVED)
        self.assertEqual(self.repo.get_by_id(other.id).status, IncidentStatus.ALERT_RECEIVED)

    def test_add_comments_in_order(self):
        """N comments leave a thread of N in insertion order."""
        for n in range(5):
            self.repo.add_comment(self.incident.id, "Admin Casa", f"update {n}")

        comments = self.repo.get_by_id(self.incident.id).comments
        self.assertEqual([c.message for c in comments], [f"update {n}" for n in range(5)])
        self.assertTrue(all(c.author == "Admin Casa" for c in comments))
        timestamps = [c.timestamp for c in comments]
        self.assertEqual(timestamps, sorted(timestamps))

    def test_comment_timestamp_never_goes_backwards(self):
        """A comment is never stamped before the previous one."""
        self.repo.add_comment(self.incident.id, "A", "first")
        future = self.repo.get_by_id(self.incident.id).comments[0].timestamp + timedelta(hours=1)
        self.repo._mutate(
            self.incident.id,
            lambda i: i.model_copy(update={
                "comments": [i.comments[0].model_copy(update={"timestamp": future})]
            })
        )
        updated = self.repo.add_comment(self.incident.id, "A", "second")
        self.assertGreaterEqual(updated.comments[1].timestamp, future)

    def test_empty_comment_rejected(self):
        """Blank comments are a validation error."""
        with self.assertRaises(ValidationError):
            self.repo.add_comment(self.incident.id, "A", "  ")
        self.assertEqual(self.repo.get_by_id(self.incident.id).comments, [])

    def test_comment_on_missing_incident(self):
        """Comments on unknown ids raise NotFoundError."""
        with self.assertRaises(NotFoundError):
            self.repo.add_comment("missing", "A", "hello")

    def test_assign_records_admin(self):
        """Assignment stores the admin id."""
        updated = self.repo.assign(self.incident.id, "admin-7")
        self.assertEqual(updated.assigned_admin_id, "admin-7")
        self.assertEqual(self.store.get_all(INCIDENTS)[0]["assignedAdminId"], "admin-7")

    def test_assign_unknown_admin_is_stored_as_is(self):
        """Assignment does not check the directory."""
        updated = self.repo.assign(self.incident.id, "does-not-exist")
        self.assertEqual(updated.assigned_admin_id, "does-not-exist")

    def test_assign_missing_incident(self):
        """Assigning an unknown incident raises NotFoundError."""
        with self.assertRaises(NotFoundError):
            self.repo.assign("missing", "admin-7")


class TestCorruptIncidents(unittest.TestCase):
    """Test cases for malformed persisted data."""

    def test_malformed_records_read_as_empty(self):
        """A collection that fails record validation reads as empty."""
        store = CollectionStore(InMemoryKeyValueBackend())
        store.save_all(INCIDENTS, [{"id": "x", "type": "NOT_A_TYPE"}])
        self.assertEqual(IncidentRepository(store).get_all(), [])


def test_concurrent_writers_last_write_wins(store):
    """Without optimistic concurrency a stale write silently replaces newer data."""
    repo = IncidentRepository(store)
    incident = repo.create(make_incident_input())

    records, version = repo._load()
    repo.add_comment(incident.id, "A", "lost")
    repo._save(records, version)

    assert repo.get_by_id(incident.id).comments == []


def test_optimistic_concurrency_rejects_stale_write(store):
    """With optimistic concurrency a stale write raises ConcurrencyError."""
    repo = IncidentRepository(store, optimistic_concurrency=True)
    incident = repo.create(make_incident_input())

    records, version = repo._load()
    repo.add_comment(incident.id, "A", "kept")
    with pytest.raises(ConcurrencyError):
        repo._save(records, version)

    assert [c.message for c in repo.get_by_id(incident.id).comments] == ["kept"]


def test_parallel_comments_are_serialized_per_call(store):
    """Threads adding comments each complete without raising."""
    repo = IncidentRepository(store)
    incident = repo.create(make_incident_input())
    errors = []

    def worker(n):
        try:
            repo.add_comment(incident.id, "A", f"c{n}")
        except Exception as e:  # pragma: no cover
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert 1 <= len(repo.get_by_id(incident.id).comments) <= 5


def test_kitchen_fire_scenario(store, policy, rabat_admin):
    """A Casablanca fire moves to RESPONDERS_EN_ROUTE and stays invisible to Rabat."""
    repo = IncidentRepository(store)
    incident = repo.create(make_incident_input(description="kitchen fire"))
    assert incident.status == IncidentStatus.ALERT_RECEIVED

    repo.update_status(incident.id, IncidentStatus.RESPONDERS_EN_ROUTE)
    assert [i.status for i in repo.get_all()] == [IncidentStatus.RESPONDERS_EN_ROUTE]

    assert repo.get_by_region(rabat_admin.region) == []
    assert policy.visible_incidents(rabat_admin, repo) == []
