import json
import os
import shutil
import tempfile
import unittest
from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from database.database import init_db
from database.models import ExpenseModel, IncomeModel
from main import app
from routers.backup import get_backup_service
from services.backup_service import BackupService
from services.budget_service import BudgetService

class BackupTestCase:
    """Base SQLite sur fichier dans un répertoire temporaire"""

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.engine = create_engine(
            f"sqlite:///{os.path.join(self.tmp_dir, 'finance.db')}",
            connect_args={"check_same_thread": False},
        )
        init_db(bind=self.engine)
        self.Session = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.service = BackupService(self.engine, os.path.join(self.tmp_dir, "backups"))

        db = self.Session()
        try:
            BudgetService(db).initialize_default_budget(today=date(2026, 3, 10))
            db.add(IncomeModel(date=date(2026, 3, 1), amount=8000, source="Salary"))
            db.commit()
        finally:
            db.close()
        self.add_expense(42)

    def tearDown(self):
        self.engine.dispose()
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def add_expense(self, amount):
        db = self.Session()
        try:
            db.add(ExpenseModel(date=date(2026, 3, 2), amount=amount, category_id=1, description="Test"))
            db.commit()
        finally:
            db.close()

    def expense_amounts(self):
        db = self.Session()
        try:
            return sorted(e.amount for e in db.query(ExpenseModel).all())
        finally:
            db.close()

class BackupServiceTests(BackupTestCase, unittest.TestCase):
    def test_create_and_list_backups(self):
        file_name = self.service.create_backup("manual")
        self.assertEqual(file_name, "manual.db")
        self.assertTrue(os.path.exists(self.service.backup_path("manual.db")))

        backups = self.service.list_backups()
        self.assertEqual([b.file_name for b in backups], ["manual.db"])
        self.assertGreater(backups[0].file_size, 0)

    def test_default_backup_name(self):
        self.assertTrue(self.service.create_backup().startswith("backup_"))

    def test_restore_backup(self):
        self.service.create_backup("before_change")
        self.add_expense(99)
        self.assertEqual(self.expense_amounts(), [42, 99])

        self.assertTrue(self.service.restore_backup("before_change.db"))
        self.assertEqual(self.expense_amounts(), [42])
        # L'état précédent la restauration est sauvegardé
        self.assertTrue(any(b.file_name.startswith("before_restore_") for b in self.service.list_backups()))

    def test_restore_missing_backup(self):
        self.assertFalse(self.service.restore_backup("missing.db"))

    def test_only_database_files_can_be_restored(self):
        self.service.create_backup("manual")
        with self.assertRaises(ValueError):
            self.service.restore_backup("manual.json")
        self.assertEqual(self.expense_amounts(), [42])

    def test_file_names_cannot_escape_backup_dir(self):
        for name in ("../finance.db", "a/b.db", "..", ""):
            with self.assertRaises(ValueError):
                self.service.backup_path(name)
        with self.assertRaises(ValueError):
            self.service.create_backup("../evil")

    def test_in_memory_database_cannot_be_backed_up(self):
        service = BackupService(create_engine("sqlite://"), os.path.join(self.tmp_dir, "memory"))
        with self.assertRaises(RuntimeError):
            service.create_backup("memory")

    def test_export_contains_every_table(self):
        data = json.loads(self.service.export_data())
        self.assertIn("exported_at", data)
        self.assertEqual(len(data["spending_categories"]), 13)
        self.assertEqual(data["expenses"][0]["date"], "2026-03-02")
        self.assertEqual(data["incomes"][0]["source"], "Salary")

    def test_import_replaces_data(self):
        exported = self.service.export_data()
        self.add_expense(99)

        counts = self.service.import_data(exported)
        self.assertEqual(counts["expenses"], 1)
        self.assertEqual(counts["budget_limits"], 25)
        self.assertEqual(self.expense_amounts(), [42])
        self.assertTrue(any(b.file_name.startswith("before_import_") for b in self.service.list_backups()))

    def test_import_rejects_invalid_documents(self):
        with self.assertRaises(ValueError):
            self.service.import_data("not json")
        with self.assertRaises(ValueError):
            self.service.import_data("[]")
        with self.assertRaises(ValueError):
            self.service.import_data(json.dumps({"expenses": "oops"}))
        with self.assertRaises(ValueError):
            self.service.import_data(json.dumps({"incomes": [{"id": 1, "date": "hier", "amount": 1, "source": "x"}]}))
        self.assertEqual(self.expense_amounts(), [42])

    def test_failed_import_leaves_data_untouched(self):
        data = json.loads(self.service.export_data())
        duplicate = dict(data["expenses"][0])
        data["expenses"].append(duplicate)

        with self.assertRaises(ValueError):
            self.service.import_data(json.dumps(data))
        self.assertEqual(self.expense_amounts(), [42])

    def test_import_with_dangling_category_is_rolled_back(self):
        data = json.loads(self.service.export_data())
        data["budget_limits"][-1]["category_id"] = 999

        with self.assertRaises(ValueError):
            self.service.import_data(json.dumps(data))
        self.assertEqual(self.expense_amounts(), [42])

        db = self.Session()
        try:
            status = BudgetService(db).get_current_budget_status(today=date(2026, 3, 10))
        finally:
            db.close()
        self.assertEqual(len(status["category_budgets"]), 12)

    def test_foreign_keys_are_enforced(self):
        db = self.Session()
        try:
            db.add(ExpenseModel(date=date(2026, 3, 2), amount=1, category_id=999))
            with self.assertRaises(IntegrityError):
                db.commit()
            db.rollback()
        finally:
            db.close()

    def test_cleanup_keeps_most_recent(self):
        for name in ("first", "second", "third"):
            self.service.create_backup(name)

        deleted = self.service.cleanup_old_backups(keep_count=1)
        self.assertEqual(sorted(deleted), ["first.db", "second.db"])
        self.assertEqual([b.file_name for b in self.service.list_backups()], ["third.db"])
        self.assertFalse(os.path.exists(self.service.backup_path("first.json")))

class BackupApiTests(BackupTestCase, unittest.TestCase):
    def setUp(self):
        super().setUp()
        app.dependency_overrides[get_backup_service] = lambda: self.service
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_backup_service, None)
        super().tearDown()

    def test_create_list_and_download(self):
        response = self.client.post("/api/backup/create", json={"name": "api"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["backup_file_name"], "api.db")

        backups = self.client.get("/api/backup/list").json()["backups"]
        self.assertEqual([b["file_name"] for b in backups], ["api.db"])

        response = self.client.get("/api/backup/download/api.db")
        self.assertEqual(response.status_code, 200)
        self.assertGreater(len(response.content), 0)
        self.assertEqual(self.client.get("/api/backup/download/missing.db").status_code, 404)

    def test_create_without_body(self):
        response = self.client.post("/api/backup/create")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["backup_file_name"].startswith("backup_"))

    def test_restore(self):
        self.client.post("/api/backup/create", json={"name": "api"})
        self.add_expense(99)
        response = self.client.post("/api/backup/restore/api.db")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.expense_amounts(), [42])

        self.assertEqual(self.client.post("/api/backup/restore/missing.db").status_code, 400)
        self.assertEqual(self.client.post("/api/backup/restore/api.json").status_code, 400)

    def test_export_and_import(self):
        response = self.client.get("/api/backup/export")
        self.assertEqual(response.status_code, 200)
        self.assertIn("finance_export_", response.headers["content-disposition"])
        exported = response.content

        self.add_expense(99)
        response = self.client.post(
            "/api/backup/import", files={"file": ("export.json", exported, "application/json")}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["imported"]["expenses"], 1)
        self.assertEqual(self.expense_amounts(), [42])

    def test_import_rejects_bad_files(self):
        response = self.client.post("/api/backup/import", files={"file": ("empty.json", b"", "application/json")})
        self.assertEqual(response.status_code, 400)
        response = self.client.post("/api/backup/import", files={"file": ("bad.json", b"{oops", "application/json")})
        self.assertEqual(response.status_code, 400)

    def test_cleanup(self):
        for name in ("one", "two"):
            self.client.post("/api/backup/create", json={"name": name})
        response = self.client.post("/api/backup/cleanup", json={"keep_count": 1})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["deleted"], ["one.db"])

if __name__ == "__main__":
    unittest.main()
