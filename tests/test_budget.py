import unittest
from datetime import date

from database import crud
from database.models import BudgetLimitModel, SpendingCategoryModel
from models.budget import SavingsGoalCreate
from models.enums import AlertType, FinancialPeriodType, SavingsGoalType
from models.expense import ExpenseCreate
from models.income import IncomeCreate
from services.budget_service import (
    BudgetService, calculate_financial_health_score, get_achievements, get_alert_level,
    get_category_status, get_celebration_badges, get_financial_health_grade,
    get_motivational_message, get_status_color
)
from services.exceptions import NotFoundError
from services.expense_service import ExpenseService
from services.income_service import IncomeService
from support import SEED_DAY, ApiTestCase

class BudgetTierTests(unittest.TestCase):
    def test_category_status_tiers(self):
        self.assertEqual(get_category_status(0), "Great")
        self.assertEqual(get_category_status(49.99), "Great")
        self.assertEqual(get_category_status(50), "Good")
        self.assertEqual(get_category_status(75), "Caution")
        self.assertEqual(get_category_status(90), "Watch")
        self.assertEqual(get_category_status(150), "Watch")
        self.assertEqual(get_status_color(89.9), "yellow")
        self.assertEqual(get_status_color(120), "orange")

    def test_alert_level_tiers(self):
        self.assertIsNone(get_alert_level(49.9))
        self.assertEqual(get_alert_level(50), AlertType.INFO)
        self.assertEqual(get_alert_level(75), AlertType.WARNING)
        self.assertEqual(get_alert_level(90), AlertType.CRITICAL)
        self.assertEqual(get_alert_level(100), AlertType.EXCEEDED)

    def test_health_grade_and_score(self):
        self.assertEqual(get_financial_health_grade(25), "Excellent")
        self.assertEqual(get_financial_health_grade(20), "Good")
        self.assertEqual(get_financial_health_grade(15), "Fair")
        self.assertEqual(get_financial_health_grade(14.9), "Improving")
        self.assertEqual(calculate_financial_health_score(10), 40)
        self.assertEqual(calculate_financial_health_score(40), 100)
        self.assertEqual(calculate_financial_health_score(-5), 0)

    def test_achievements_and_badges(self):
        self.assertEqual(len(get_achievements(30)), 5)
        self.assertEqual(get_achievements(9), [])
        self.assertEqual(get_celebration_badges(24), ["🏆 Strong Saver Badge", "🎯 Target Achieved Badge"])

    def test_motivational_message_depends_on_period(self):
        double = get_motivational_message(21, FinancialPeriodType.DOUBLE_HOUSING.value)
        new_home = get_motivational_message(21, FinancialPeriodType.NEW_HOME.value)
        self.assertIn("double housing", double)
        self.assertIn("financial independence", new_home)

class BudgetServiceTests(ApiTestCase, unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.seed_budget()
        self.service = BudgetService(self.db, monthly_income=8000)
        self.groceries = self.category_id("Groceries")
        self.rent = self.category_id("Rent")

    def _spend(self, day, amount, category_id):
        return ExpenseService(self.db).create_expense(
            ExpenseCreate(date=day, amount=amount, category_id=category_id), today=SEED_DAY
        )

    def test_initialize_is_idempotent(self):
        self.seed_budget()
        self.assertEqual(self.db.query(SpendingCategoryModel).count(), 13)
        self.assertEqual(len(self.service.get_periods()), 2)
        # 13 limites pour la double location, 12 ensuite (plus de loyer)
        self.assertEqual(self.db.query(BudgetLimitModel).count(), 25)

    def test_active_period_follows_seed_date(self):
        self.assertEqual(self.service.get_current_period().type, FinancialPeriodType.NEW_HOME.value)

    def test_budget_status(self):
        self._spend(date(2026, 3, 5), 100, self.groceries)
        self._spend(date(2026, 2, 5), 999, self.groceries)

        status = self.service.get_current_budget_status(today=SEED_DAY)
        self.assertEqual(status["current_period"], "New Home Period")
        self.assertEqual(status["monthly_income"], 8000)
        self.assertEqual(status["total_spent"], 100)
        self.assertEqual(status["days_left_in_month"], 22)
        self.assertEqual(status["actual_savings"], 7900)

        groceries = next(c for c in status["category_budgets"] if c["category_name"] == "Groceries")
        self.assertEqual(groceries["limit"], 400)
        self.assertEqual(groceries["percentage_used"], 25)
        self.assertEqual(groceries["remaining"], 300)
        self.assertEqual(groceries["status"], "Great")
        self.assertEqual(groceries["daily_recommendation"], round(300 / 22, 2))
        self.assertNotIn("Rent", [c["category_name"] for c in status["category_budgets"]])

        # Catégories essentielles d'abord
        essentials = [c["is_essential"] for c in status["category_budgets"]]
        self.assertEqual(essentials, sorted(essentials, reverse=True))

    def test_status_uses_recorded_income(self):
        IncomeService(self.db).create_income(IncomeCreate(date=date(2026, 3, 1), amount=10000, source="Salary"))
        self._spend(date(2026, 3, 2), 1000, self.groceries)
        status = self.service.get_current_budget_status(today=SEED_DAY)
        self.assertEqual(status["monthly_income"], 10000)
        self.assertEqual(status["savings_rate"], 90)

    def test_check_spending(self):
        self._spend(date(2026, 3, 5), 100, self.groceries)
        check = self.service.check_spending(self.groceries, 300, today=SEED_DAY)
        self.assertTrue(check["is_allowed"])
        self.assertEqual(check["alert_level"], AlertType.EXCEEDED)
        self.assertEqual(check["new_percentage_used"], 100)
        self.assertEqual(check["remaining_budget"], 0)

    def test_check_spending_without_limit(self):
        check = self.service.check_spending(self.rent, 50, today=SEED_DAY)
        self.assertEqual(check["message"], "No budget limit set for this category")
        self.assertIsNone(check["alert_level"])

    def test_financial_health(self):
        IncomeService(self.db).create_income(IncomeCreate(date=date(2026, 3, 1), amount=10000, source="Salary"))
        self._spend(date(2026, 3, 2), 8000, self.groceries)

        health = self.service.get_financial_health(today=SEED_DAY)
        self.assertEqual(health["grade"], "Good")
        self.assertEqual(health["savings_rate"], 20)
        self.assertEqual(health["score"], 80)
        self.assertTrue(health["is_on_track"])
        self.assertEqual(len(health["achievements"]), 3)

    def test_savings_celebration(self):
        self._spend(date(2026, 3, 2), 6000, self.groceries)
        celebration = self.service.get_savings_celebration(today=SEED_DAY)
        self.assertEqual(celebration["savings_rate"], 25)
        self.assertEqual(celebration["savings_amount"], 2000)
        self.assertIn("🎯 Target Achieved Badge", celebration["achievements"])

    def test_celebration_tiers_use_unrounded_rate(self):
        # 1919.68 épargnés sur 8000 : 23.996 %, affiché 24 %
        self._spend(date(2026, 3, 2), 6080.32, self.groceries)
        celebration = self.service.get_savings_celebration(today=SEED_DAY)
        self.assertEqual(celebration["savings_rate"], 24)
        self.assertEqual(celebration["achievements"], ["🏆 Strong Saver Badge"])
        self.assertTrue(celebration["message"].startswith("💪 EXCELLENT!"))

    def _add_goals(self):
        period = self.service.get_current_period()
        crud.create_savings_goal(self.db, SavingsGoalCreate(
            type=SavingsGoalType.EMERGENCY_FUND, name="Emergency Fund", monthly_target=500, is_required=True
        ), period.id)
        crud.create_savings_goal(self.db, SavingsGoalCreate(
            type=SavingsGoalType.INVESTMENTS, name="Investments", monthly_target=1500
        ), period.id)

    def test_savings_progress_is_split_by_target(self):
        self._add_goals()
        self._spend(date(2026, 3, 2), 7000, self.groceries)

        status = self.service.get_current_budget_status(today=SEED_DAY)
        self.assertEqual(status["savings_target"], 2000)
        self.assertEqual(status["actual_savings"], 1000)

        emergency, investments = status["savings_progress"]
        self.assertEqual(emergency["actual"], 250)
        self.assertEqual(emergency["progress"], 50)
        self.assertFalse(emergency["is_achieved"])
        self.assertEqual(emergency["motivational_message"], "👍 Good work on Emergency Fund - keep it up!")
        self.assertEqual(investments["actual"], 750)
        self.assertEqual(investments["progress"], 50)
        self.assertFalse(investments["is_achieved"])
        self.assertEqual(investments["motivational_message"], "👍 Good work on Investments - keep it up!")

    def test_savings_progress_is_capped_at_100(self):
        self._add_goals()
        self._spend(date(2026, 3, 2), 100, self.groceries)

        emergency, investments = self.service.get_current_budget_status(today=SEED_DAY)["savings_progress"]
        self.assertEqual(emergency["actual"], 1975)
        self.assertEqual(emergency["progress"], 100)
        self.assertTrue(emergency["is_achieved"])
        self.assertEqual(emergency["motivational_message"], "🎉 Amazing! You've exceeded your Emergency Fund goal!")
        self.assertEqual(investments["actual"], 5925)
        self.assertEqual(investments["progress"], 100)
        self.assertTrue(investments["is_achieved"])

    def test_alerts_are_recorded_once_per_tier(self):
        self._spend(date(2026, 3, 1), 210, self.groceries)
        self._spend(date(2026, 3, 2), 10, self.groceries)
        self._spend(date(2026, 3, 3), 150, self.groceries)
        # Mois passé : pas d'alerte
        self._spend(date(2026, 2, 3), 1000, self.groceries)

        alerts = self.service.get_active_alerts()
        self.assertEqual([a.type for a in alerts], [AlertType.CRITICAL.value, AlertType.INFO.value])
        self.assertEqual(alerts[0].category_name, "Groceries")
        self.assertEqual(alerts[0].percentage_used, 92.5)

        self.service.mark_alert_read(alerts[0].id)
        self.assertEqual(len(self.service.get_active_alerts()), 1)
        self.assertIsNone(self.service.mark_alert_read(9999))

    def test_activate_period(self):
        double_housing = next(p for p in self.service.get_periods()
                              if p.type == FinancialPeriodType.DOUBLE_HOUSING.value)
        self.service.activate_period(double_housing.id)
        self.assertEqual(self.service.get_current_period().id, double_housing.id)
        self.assertEqual(sum(p.is_active for p in self.service.get_periods()), 1)
        self.assertIn("Rent", [l["category_name"] for l in self.service.get_budget_limits()])

        with self.assertRaises(NotFoundError):
            self.service.activate_period(9999)

class UninitializedBudgetApiTests(ApiTestCase, unittest.TestCase):
    def test_status_without_periods(self):
        response = self.client.get("/api/budget/status")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Aucune période financière définie")

class BudgetApiTests(ApiTestCase, unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.seed_budget()

    def test_status_endpoint(self):
        response = self.client.get("/api/budget/status")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"]["current_period"], "New Home Period")

    def test_initialize_endpoint(self):
        response = self.client.post("/api/budget/initialize")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])

    def test_check_spending_endpoint(self):
        response = self.client.post(
            "/api/budget/check-spending",
            json={"category_id": self.category_id("Groceries"), "amount": 250}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["check"]["new_percentage_used"], 62.5)
        self.assertEqual(response.json()["check"]["alert_level"], "Info")

    def test_create_custom_category(self):
        response = self.client.post(
            "/api/budget/categories",
            json={"name": "  Pets ", "monthly_limit": 120, "is_essential": False}
        )
        self.assertEqual(response.status_code, 200)
        category = response.json()["category"]
        self.assertEqual(category["category_name"], "Pets")
        self.assertTrue(category["is_custom"])

        names = [c["name"] for c in self.client.get("/api/budget/categories").json()["categories"]]
        self.assertEqual(names[-1], "Pets")
        limits = self.client.get("/api/budget/limits").json()["limits"]
        self.assertIn("Pets", [l["category_name"] for l in limits])

    def test_duplicate_or_blank_category_is_rejected(self):
        response = self.client.post("/api/budget/categories", json={"name": "Groceries", "monthly_limit": 10})
        self.assertEqual(response.status_code, 400)
        response = self.client.post("/api/budget/categories", json={"name": "  ", "monthly_limit": 10})
        self.assertEqual(response.status_code, 400)

    def test_update_category_limit(self):
        pets_id = self.client.post(
            "/api/budget/categories", json={"name": "Pets", "monthly_limit": 120}
        ).json()["category"]["category_id"]

        response = self.client.put(
            f"/api/budget/category/{pets_id}/limit",
            json={"new_limit": 80, "is_essential": True, "name": "Animals"}
        )
        self.assertEqual(response.status_code, 200)
        limit = next(l for l in self.client.get("/api/budget/limits").json()["limits"]
                     if l["category_id"] == pets_id)
        self.assertEqual(limit["monthly_limit"], 80)
        self.assertEqual(limit["category_name"], "Animals")
        self.assertTrue(limit["is_essential"])

    def test_system_category_keeps_its_name(self):
        groceries = self.category_id("Groceries")
        self.client.put(f"/api/budget/category/{groceries}/limit", json={"new_limit": 450, "name": "Food"})
        limits = self.client.get("/api/budget/limits").json()["limits"]
        self.assertIn("Groceries", [l["category_name"] for l in limits])

    def test_rename_to_existing_name_is_rejected(self):
        pets_id = self.client.post(
            "/api/budget/categories", json={"name": "Pets", "monthly_limit": 120}
        ).json()["category"]["category_id"]
        response = self.client.put(
            f"/api/budget/category/{pets_id}/limit", json={"new_limit": 80, "name": "Groceries"}
        )
        self.assertEqual(response.status_code, 400)

    def test_update_missing_limit(self):
        response = self.client.put("/api/budget/category/9999/limit", json={"new_limit": 10})
        self.assertEqual(response.status_code, 404)

    def test_savings_goals(self):
        response = self.client.post(
            "/api/budget/savings-goals",
            json={"type": "EmergencyFund", "name": "Emergency Fund", "monthly_target": 500, "is_required": True}
        )
        self.assertEqual(response.status_code, 200)
        goal_id = response.json()["goal"]["id"]

        goals = self.client.get("/api/budget/savings-goals").json()["goals"]
        self.assertEqual([g["name"] for g in goals], ["Emergency Fund"])

        status = self.client.get("/api/budget/status").json()["status"]
        self.assertEqual(status["savings_target"], 500)
        self.assertEqual(status["savings_progress"][0]["type"], "EmergencyFund")

        response = self.client.put(
            f"/api/budget/savings-goals/{goal_id}",
            json={"type": "Investments", "name": "ETF", "monthly_target": 700}
        )
        self.assertEqual(response.json()["goal"]["type"], "Investments")
        self.assertEqual(self.client.delete(f"/api/budget/savings-goals/{goal_id}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/budget/savings-goals/{goal_id}").status_code, 404)

    def test_unknown_goal_type_is_rejected(self):
        response = self.client.post(
            "/api/budget/savings-goals", json={"type": "Yacht", "name": "Boat", "monthly_target": 10}
        )
        self.assertEqual(response.status_code, 400)

    def test_alert_endpoints(self):
        self.assertEqual(self.client.get("/api/budget/alerts").json()["alerts"], [])
        self.assertEqual(self.client.post("/api/budget/alerts/42/read").status_code, 404)

    def test_periods_endpoints(self):
        periods = self.client.get("/api/budget/periods").json()["periods"]
        self.assertEqual([p["type"] for p in periods], ["DoubleHousingPeriod", "NewHomePeriod"])

        response = self.client.post(f"/api/budget/periods/{periods[0]['id']}/activate")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["period"]["is_active"])
        self.assertEqual(self.client.post("/api/budget/periods/999/activate").status_code, 404)

if __name__ == "__main__":
    unittest.main()
