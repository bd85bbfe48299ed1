"""Tests for the SQLite job store."""

import unittest

from fakes import make_record
from jobhunter.db import JobStore
from jobhunter.models import JobRecord


class TestUpsert(unittest.TestCase):
    """Verify upserts are idempotent by id."""

    def setUp(self):
        self.store = JobStore(":memory:")

    def tearDown(self):
        self.store.close()

    def test_second_upsert_keeps_created_at(self):
        self.store.upsert(make_record(1, title="Old title"))
        first = self.store.get(make_record(1).id)

        self.store.upsert(make_record(1, title="New title"))
        second = self.store.get(make_record(1).id)

        self.assertEqual(self.store.count(), 1)
        self.assertEqual(second.title, "New title")
        self.assertEqual(second.created_at, first.created_at)
        self.assertGreater(second.updated_at, first.updated_at)

    def test_batch_upsert_chunks_and_counts(self):
        written = self.store.batch_upsert([make_record(i) for i in range(60)], max_batch_size=25)
        self.assertEqual(written, 60)
        self.assertEqual(self.store.count(), 60)

    def test_batch_upsert_overwrites_existing(self):
        self.store.batch_upsert([make_record(1)])
        self.store.batch_upsert([make_record(1, company="Globex"), make_record(2)])
        self.assertEqual(self.store.count(), 2)
        self.assertEqual(self.store.get(make_record(1).id).company, "Globex")

    def test_missing_id_rejected(self):
        with self.assertRaises(ValueError):
            self.store.upsert(make_record(1, id=""))
        self.assertEqual(self.store.count(), 0)

    def test_get_unknown_is_none(self):
        self.assertIsNone(self.store.get("nope"))


class TestScanPage(unittest.TestCase):
    """Verify keyset pagination ordered by id."""

    def setUp(self):
        self.store = JobStore(":memory:")
        self.store.batch_upsert([make_record(i) for i in range(5)])

    def tearDown(self):
        self.store.close()

    def test_pages_cover_everything_once(self):
        seen = []
        cursor = None
        pages = 0
        while True:
            items, cursor = self.store.scan_page(2, cursor)
            pages += 1
            seen.extend(r.id for r in items)
            if cursor is None:
                break
        self.assertEqual(pages, 3)
        self.assertEqual(seen, sorted(make_record(i).id for i in range(5)))

    def test_exact_fit_has_no_next_cursor(self):
        items, cursor = self.store.scan_page(5)
        self.assertEqual(len(items), 5)
        self.assertIsNone(cursor)

    def test_invalid_limit(self):
        with self.assertRaises(ValueError):
            self.store.scan_page(0)


class TestQueries(unittest.TestCase):
    """Verify listing and keyword search."""

    def setUp(self):
        self.store = JobStore(":memory:")
        self.store.batch_upsert(
            [
                make_record(1, title="Node Engineer", posted_at="2024-01-01T00:00:00Z"),
                make_record(2, title="Go Developer", posted_at="2024-03-01T00:00:00Z"),
                make_record(3, title="NODE lead", source="other", id="other-3"),
            ]
        )

    def tearDown(self):
        self.store.close()

    def test_list_newest_first(self):
        jobs = self.store.list_jobs(source="weworkremotely")
        self.assertEqual([j.title for j in jobs], ["Go Developer", "Node Engineer"])
        self.assertEqual(len(self.store.list_jobs(limit=1)), 1)

    def test_search_is_case_insensitive(self):
        self.assertEqual(len(self.store.search("node")), 2)
        self.assertEqual([j.id for j in self.store.search("node", source="weworkremotely")], [make_record(1).id])
        self.assertEqual(self.store.search("   "), [])


class TestJobRecordItem(unittest.TestCase):
    def test_item_uses_camel_case_keys(self):
        self.store = JobStore(":memory:")
        self.addCleanup(self.store.close)
        self.store.upsert(make_record(1))
        item = self.store.get(make_record(1).id).to_item()
        for key in ("descriptionPreview", "applyUrl", "remoteOk", "postedAt", "createdAt", "updatedAt"):
            self.assertIn(key, item)
        self.assertIs(item["remoteOk"], True)

    def test_item_round_trip(self):
        self.store = JobStore(":memory:")
        self.addCleanup(self.store.close)
        self.store.upsert(make_record(1, remote_ok=False))
        stored = self.store.get(make_record(1).id)

        self.assertEqual(JobRecord.from_item(stored.to_item()), stored)

    def test_from_item_without_timestamps(self):
        item = make_record(2).to_item()
        self.assertNotIn("createdAt", item)
        self.assertEqual(JobRecord.from_item(item), make_record(2))


if __name__ == "__main__":
    unittest.main()
