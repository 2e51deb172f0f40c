from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import crud
from database.database import Base, get_db, init_db
from main import app
from services.budget_service import BudgetService

# Période "New Home" active à cette date
SEED_DAY = date(2026, 3, 10)

class ApiTestCase:
    """Base SQLite en mémoire, recréée pour chaque test, branchée sur l'application"""

    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        init_db(bind=self.engine)
        self.Session = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.db = self.Session()

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)
        self.db.close()
        Base.metadata.drop_all(bind=self.engine)
        self.engine.dispose()

    def seed_budget(self, today=SEED_DAY):
        BudgetService(self.db).initialize_default_budget(today=today)

    def category_id(self, name):
        return crud.get_category_by_name(self.db, name).id
