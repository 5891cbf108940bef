import unittest

from survey_backend.errors import StoreAccessError
from survey_backend.store import SqlRowStore
from survey_backend.submissions import ingest, retrieve


class SqlRowStoreTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres store logic.
    """

    def setUp(self):
        self.store = SqlRowStore("sqlite+pysqlite:///:memory:")

    def test_create_and_get_table(self):
        table = self.store.create_table("Submissions")
        self.assertEqual(table.name, "Submissions")
        self.assertFalse(table.bold_header)
        fetched = self.store.get_table("Submissions")
        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.name, "Submissions")
        self.assertIsNone(self.store.get_table("Missing"))

    def test_create_twice_fails(self):
        self.store.create_table("t")
        with self.assertRaises(StoreAccessError):
            self.store.create_table("t")

    def test_append_and_read_rows_in_order(self):
        self.store.create_table("t")
        self.store.append_row("t", ["A", "B"])
        self.store.append_row("t", ["1", 2])
        self.store.append_row("t", [True, ""])
        self.assertEqual(
            self.store.get_rows("t"), [["A", "B"], ["1", 2], [True, ""]]
        )

    def test_empty_table_has_no_rows(self):
        self.store.create_table("t")
        self.assertEqual(self.store.get_rows("t"), [])

    def test_missing_table_raises(self):
        with self.assertRaises(StoreAccessError):
            self.store.append_row("nope", ["x"])
        with self.assertRaises(StoreAccessError):
            self.store.get_rows("nope")

    def test_get_and_set_cell(self):
        self.store.create_table("t")
        self.store.append_row("t", ["A", "B"])
        self.store.append_row("t", ["1"])
        self.assertEqual(self.store.get_cell("t", 1, 2), "B")
        self.assertEqual(self.store.get_cell("t", 2, 2), "")
        self.store.set_cell("t", 2, 3, "z")
        self.assertEqual(self.store.get_rows("t")[1], ["1", "", "z"])
        with self.assertRaises(StoreAccessError):
            self.store.set_cell("t", 5, 1, "x")
        with self.assertRaises(StoreAccessError):
            self.store.get_cell("t", 0, 1)

    def test_format_header(self):
        self.store.create_table("t")
        self.store.format_header("t", bold=True, frozen_rows=1)
        table = self.store.get_table("t")
        self.assertTrue(table.bold_header)
        self.assertEqual(table.frozen_rows, 1)

    def test_ingest_and_retrieve_against_sql(self):
        body = {"headers": ["Role", "Consent"], "values": ["Lead", "Yes"], "hash": "h"}
        self.assertEqual(ingest(body, self.store), {"status": "ok"})
        self.assertEqual(ingest(body, self.store), {"status": "duplicate"})
        self.assertEqual(
            retrieve("getAll", self.store),
            [{"role": "Lead", "consent": True, "hash": "h"}],
        )


class InMemoryRowStoreTests(unittest.TestCase):
    def setUp(self):
        from survey_backend.store import InMemoryRowStore

        self.store = InMemoryRowStore()

    def test_cells_and_reset(self):
        self.store.create_table("t")
        self.store.append_row("t", ["A"])
        self.store.set_cell("t", 1, 2, "B")
        self.assertEqual(self.store.get_cell("t", 1, 2), "B")
        self.assertEqual(self.store.get_cell("t", 3, 1), "")
        self.store.reset()
        self.assertIsNone(self.store.get_table("t"))

    def test_get_rows_returns_copies(self):
        self.store.create_table("t")
        self.store.append_row("t", ["A"])
        self.store.get_rows("t")[0].append("mutated")
        self.assertEqual(self.store.get_rows("t"), [["A"]])


if __name__ == "__main__":
    unittest.main()
