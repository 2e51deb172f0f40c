"""
Calcul de l'état du budget : pourcentages consommés par catégorie, paliers
de statut, santé financière et messages de motivation.
"""
import calendar
import logging
from collections import namedtuple
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from config import MONTHLY_INCOME
from database import crud
from database.models import (
    BudgetLimitModel, ExpenseModel, FinancialPeriodModel, IncomeModel,
    SpendingAlertModel, SpendingCategoryModel
)
from models.enums import AlertType, FinancialPeriodType
from services.exceptions import NotFoundError

logger = logging.getLogger(__name__)

DefaultCategory = namedtuple(
    'DefaultCategory', 'name icon is_essential double_housing_limit new_home_limit'
)

DEFAULT_CATEGORIES = [
    DefaultCategory("Mortgage", "home", True, 1746, 3750),
    DefaultCategory("Rent", "apartment", True, 2340, 0),
    DefaultCategory("Groceries", "shopping_cart", True, 400, 400),
    DefaultCategory("Transport", "directions_car", True, 350, 350),
    DefaultCategory("Utilities", "power", True, 320, 320),
    DefaultCategory("Repayment", "payment", True, 500, 500),
    DefaultCategory("Food & Drinks", "restaurant", False, 200, 300),
    DefaultCategory("Entertainment", "movie", False, 150, 200),
    DefaultCategory("Health & Fitness", "fitness_center", False, 112, 112),
    DefaultCategory("Home", "home_repair_service", False, 200, 250),
    DefaultCategory("Savings", "savings", False, 300, 400),
    DefaultCategory("Shopping", "shopping_bag", False, 100, 200),
    DefaultCategory("Miscellaneous", "category", False, 150, 200),
]

DOUBLE_HOUSING_END = date(2026, 1, 31)
NEW_HOME_START = date(2026, 2, 1)

# Paliers de consommation du budget (en %)

def get_category_status(percentage_used: float) -> str:
    if percentage_used < 50:
        return "Great"
    if percentage_used < 75:
        return "Good"
    if percentage_used < 90:
        return "Caution"
    return "Watch"

def get_status_color(percentage_used: float) -> str:
    if percentage_used < 50:
        return "green"
    if percentage_used < 75:
        return "blue"
    if percentage_used < 90:
        return "yellow"
    return "orange"

def get_alert_level(percentage_used: float) -> Optional[AlertType]:
    if percentage_used < 50:
        return None
    if percentage_used < 75:
        return AlertType.INFO
    if percentage_used < 90:
        return AlertType.WARNING
    if percentage_used < 100:
        return AlertType.CRITICAL
    return AlertType.EXCEEDED

def get_spending_check_message(category_name: str, percentage_used: float, is_essential: bool) -> str:
    if percentage_used < 50:
        return f"You're doing great with {category_name}! Still plenty of room in your budget."
    if percentage_used < 75:
        return f"You're on track with {category_name} spending. You've used {percentage_used:.0f}% of your budget."
    if percentage_used < 90:
        return f"Heads up! You're at {percentage_used:.0f}% of your {category_name} budget. Still manageable!"
    if percentage_used < 100:
        return (f"You're approaching your {category_name} limit at {percentage_used:.0f}%. "
                f"Consider if this expense is necessary.")
    if is_essential:
        return (f"This would push essential spending for {category_name} above the plan. "
                f"Is there a way to soften this expense?")
    return (f"This would put you over your {category_name} budget. "
            f"You've got this - maybe save this for next month?")

def get_encouragement_message(percentage_used: float) -> str:
    if percentage_used < 50:
        return "You're crushing your budget goals! 🎉"
    if percentage_used < 75:
        return "Keep up the great work! You're staying on track! 👍"
    if percentage_used < 90:
        return "You're still doing well - just keeping an eye on things! 👀"
    return "Every dollar counts towards your financial goals! 💪"

def get_savings_motivational_message(progress: float, goal_name: str) -> str:
    if progress >= 100:
        return f"🎉 Amazing! You've exceeded your {goal_name} goal!"
    if progress >= 90:
        return f"🔥 So close! You're almost at your {goal_name} target!"
    if progress >= 75:
        return f"💪 Great progress on {goal_name} - you're doing awesome!"
    if progress >= 50:
        return f"👍 Good work on {goal_name} - keep it up!"
    return f"💡 Every dollar towards {goal_name} is progress!"

def get_motivational_message(savings_rate: float, period_type: str) -> str:
    if period_type == FinancialPeriodType.DOUBLE_HOUSING.value:
        if savings_rate >= 22:
            return "🎉 Incredible! You're saving over 22% even with double housing costs!"
        if savings_rate >= 20:
            return "💪 Amazing! 20%+ savings rate during double housing period is fantastic!"
        if savings_rate >= 15:
            return "👍 Great job! You're building wealth even during this tight period!"
        if savings_rate >= 10:
            return "🌱 Good progress! Every dollar saved now makes February even better!"
        return "💡 February is coming - your financial freedom is just around the corner!"

    if savings_rate >= 30:
        return "🚀 Exceptional! You're a savings superstar with 30%+ savings rate!"
    if savings_rate >= 24:
        return "🎉 Perfect! You've hit your 24% savings target - you're building serious wealth!"
    if savings_rate >= 20:
        return "💪 Excellent! 20%+ savings rate means you're on track for financial independence!"
    if savings_rate >= 15:
        return "👍 Good work! You're building a solid financial foundation!"
    return "🌱 Every month gets you closer to your financial goals!"

def get_financial_health_grade(savings_rate: float) -> str:
    if savings_rate >= 25:
        return "Excellent"
    if savings_rate >= 20:
        return "Good"
    if savings_rate >= 15:
        return "Fair"
    return "Improving"

def calculate_financial_health_score(savings_rate: float) -> float:
    return min(100, max(0, savings_rate * 4))

def get_achievements(savings_rate: float) -> List[str]:
    achievements = []
    if savings_rate >= 30:
        achievements.append("🚀 Savings Superstar (30%+)")
    if savings_rate >= 25:
        achievements.append("🎯 Excellent Saver (25%+)")
    if savings_rate >= 20:
        achievements.append("💪 Strong Saver (20%+)")
    if savings_rate >= 15:
        achievements.append("👍 Good Financial Health (15%+)")
    if savings_rate >= 10:
        achievements.append("🌱 Building Wealth (10%+)")
    return achievements

def get_recommendations(savings_rate: float) -> List[str]:
    if savings_rate < 15:
        return ["Focus on increasing your savings rate to 15%+",
                "Look for opportunities to reduce non-essential spending"]
    if savings_rate < 20:
        return ["Great progress! Aim for 20% to build wealth faster",
                "Consider automating your savings"]
    if savings_rate < 25:
        return ["Excellent work! You're in the top tier of savers",
                "Consider increasing investment allocation"]
    return ["Outstanding! You're achieving financial independence",
            "Consider diversifying your investment strategy"]

def get_health_message(grade: str, savings_rate: float) -> str:
    if grade == "Excellent":
        return f"Outstanding financial health! Your {savings_rate:.1f}% savings rate is building serious wealth."
    if grade == "Good":
        return f"Strong financial position! Your {savings_rate:.1f}% savings rate is impressive."
    if grade == "Fair":
        return f"Good progress! Your {savings_rate:.1f}% savings rate shows you're building wealth."
    return "You're on the right track! Every step towards financial health counts."

def get_celebration_message(savings_rate: float) -> str:
    if savings_rate >= 30:
        return "🚀 INCREDIBLE! You're saving 30%+ - You're a financial rockstar!"
    if savings_rate >= 24:
        return "🎉 PERFECT! You've hit your 24% target - Building serious wealth!"
    if savings_rate >= 20:
        return "💪 EXCELLENT! 20%+ savings rate - You're crushing your goals!"
    if savings_rate >= 15:
        return "👍 GREAT! Solid progress - Keep building that wealth!"
    return "🌱 GROWING! Every dollar saved is progress towards financial freedom!"

def get_celebration_badges(savings_rate: float) -> List[str]:
    badges = []
    if savings_rate >= 20:
        badges.append("🏆 Strong Saver Badge")
    if savings_rate >= 24:
        badges.append("🎯 Target Achieved Badge")
    if savings_rate >= 30:
        badges.append("🚀 Savings Superstar Badge")
    return badges

class BudgetService:
    def __init__(self, db: Session, monthly_income: float = MONTHLY_INCOME):
        self.db = db
        self.monthly_income = monthly_income

    # Initialisation

    def initialize_default_budget(self, today: Optional[date] = None):
        """Crée les périodes, catégories et limites par défaut manquantes"""
        self._ensure_financial_periods(today or date.today())
        self._ensure_default_categories()
        for period in self.db.query(FinancialPeriodModel).all():
            self._ensure_budgets_for_period(period)
        logger.info("Budget par défaut initialisé")

    def _ensure_financial_periods(self, today: date):
        if self.db.query(FinancialPeriodModel).count() > 0:
            return

        self.db.add_all([
            FinancialPeriodModel(
                name="Double Housing Period",
                type=FinancialPeriodType.DOUBLE_HOUSING.value,
                start_date=date(2024, 1, 1),
                end_date=DOUBLE_HOUSING_END,
                is_active=today <= DOUBLE_HOUSING_END,
                description="Paying both mortgage and rent - tighter budget but manageable!"
            ),
            FinancialPeriodModel(
                name="New Home Period",
                type=FinancialPeriodType.NEW_HOME.value,
                start_date=NEW_HOME_START,
                end_date=date(2030, 12, 31),
                is_active=today >= NEW_HOME_START,
                description="New home ready! Higher mortgage but no more rent - more savings potential!"
            ),
        ])
        self.db.commit()

    def _ensure_default_categories(self):
        existing_names = {name for (name,) in self.db.query(SpendingCategoryModel.name).all()}
        for config in DEFAULT_CATEGORIES:
            if config.name not in existing_names:
                self.db.add(SpendingCategoryModel(
                    name=config.name,
                    icon=config.icon,
                    is_system=True,
                    is_essential_default=config.is_essential
                ))
        self.db.commit()

    def _ensure_budgets_for_period(self, period: FinancialPeriodModel):
        existing_category_ids = {
            category_id for (category_id,) in self.db.query(BudgetLimitModel.category_id).filter(
                BudgetLimitModel.financial_period_id == period.id
            ).all()
        }
        categories = {c.name: c for c in self.db.query(SpendingCategoryModel).all()}

        for config in DEFAULT_CATEGORIES:
            category = categories.get(config.name)
            if category is None:
                continue
            limit = (config.double_housing_limit
                     if period.type == FinancialPeriodType.DOUBLE_HOUSING.value
                     else config.new_home_limit)
            if limit <= 0 or category.id in existing_category_ids:
                continue
            self.db.add(BudgetLimitModel(
                category_id=category.id,
                financial_period_id=period.id,
                monthly_limit=limit,
                is_essential=config.is_essential
            ))
        self.db.commit()

    # Périodes

    def find_current_period(self) -> Optional[FinancialPeriodModel]:
        active = self.db.query(FinancialPeriodModel).filter(
            FinancialPeriodModel.is_active == True  # noqa: E712
        ).order_by(FinancialPeriodModel.id).first()
        if active:
            return active
        return self.db.query(FinancialPeriodModel).order_by(
            FinancialPeriodModel.start_date.desc()
        ).first()

    def get_current_period(self) -> FinancialPeriodModel:
        period = self.find_current_period()
        if period is None:
            raise NotFoundError("Aucune période financière définie")
        return period

    def get_periods(self) -> List[FinancialPeriodModel]:
        return self.db.query(FinancialPeriodModel).order_by(FinancialPeriodModel.start_date).all()

    def activate_period(self, period_id: int) -> FinancialPeriodModel:
        """Rend une période active et désactive toutes les autres"""
        period = self.db.query(FinancialPeriodModel).filter(FinancialPeriodModel.id == period_id).first()
        if not period:
            raise NotFoundError(f"Période introuvable: {period_id}")
        for other in self.db.query(FinancialPeriodModel).all():
            other.is_active = other.id == period_id
        self.db.commit()
        self.db.refresh(period)
        return period

    # Sommes du mois

    def _month_expenses(self, today: date, category_id: Optional[int] = None) -> List[ExpenseModel]:
        start = date(today.year, today.month, 1)
        end = date(today.year, today.month, calendar.monthrange(today.year, today.month)[1])
        query = self.db.query(ExpenseModel).filter(ExpenseModel.date >= start, ExpenseModel.date <= end)
        if category_id is not None:
            query = query.filter(ExpenseModel.category_id == category_id)
        return query.all()

    def _month_income(self, today: date) -> float:
        start = date(today.year, today.month, 1)
        end = date(today.year, today.month, calendar.monthrange(today.year, today.month)[1])
        incomes = self.db.query(IncomeModel).filter(IncomeModel.date >= start, IncomeModel.date <= end).all()
        return sum(i.amount for i in incomes)

    def _period_limits(self, period: FinancialPeriodModel) -> List[BudgetLimitModel]:
        return self.db.query(BudgetLimitModel).filter(
            BudgetLimitModel.financial_period_id == period.id
        ).all()

    def _find_limit(self, category_id: int, period: FinancialPeriodModel) -> Optional[BudgetLimitModel]:
        return self.db.query(BudgetLimitModel).filter(
            BudgetLimitModel.category_id == category_id,
            BudgetLimitModel.financial_period_id == period.id
        ).first()

    # État du budget

    def get_current_budget_status(self, today: Optional[date] = None) -> Dict:
        status, _ = self._budget_status(today or date.today())
        return status

    def _budget_status(self, today: date):
        """État du budget du mois et taux d'épargne non arrondi"""
        period = self.get_current_period()

        expenses = self._month_expenses(today)
        month_income = self._month_income(today)
        days_in_month = calendar.monthrange(today.year, today.month)[1]
        days_left = max(0, days_in_month - today.day + 1)

        spent_by_category = {}
        for expense in expenses:
            spent_by_category[expense.category_id] = spent_by_category.get(expense.category_id, 0) + expense.amount

        category_budgets = []
        total_budgeted = 0
        total_spent = 0
        for budget in self._period_limits(period):
            spent = spent_by_category.get(budget.category_id, 0)
            percentage_used = (spent / budget.monthly_limit * 100) if budget.monthly_limit > 0 else 0
            remaining = budget.monthly_limit - spent
            daily = remaining / days_left if days_left > 0 and remaining > 0 else 0

            category_budgets.append({
                'category_id': budget.category_id,
                'category_name': budget.category.name,
                'limit': budget.monthly_limit,
                'spent': round(spent, 2),
                'remaining': round(remaining, 2),
                'percentage_used': round(percentage_used, 2),
                'daily_recommendation': round(daily, 2),
                'is_essential': budget.is_essential,
                'is_custom': not budget.category.is_system,
                'icon': budget.category.icon,
                'status': get_category_status(percentage_used),
                'status_color': get_status_color(percentage_used)
            })
            total_budgeted += budget.monthly_limit
            total_spent += spent

        income_baseline = month_income if month_income > 0 else self.monthly_income
        actual_savings = max(0, income_baseline - total_spent)

        goals = crud.get_savings_goals(self.db, period.id)
        savings_target = sum(g.monthly_target for g in goals)
        savings_progress = []
        for goal in goals:
            allocation = goal.monthly_target / savings_target if savings_target > 0 else 0
            actual = actual_savings * allocation
            progress = (actual / goal.monthly_target * 100) if goal.monthly_target > 0 else 0
            savings_progress.append({
                'type': goal.type,
                'name': goal.name,
                'target': goal.monthly_target,
                'actual': round(actual, 2),
                'progress': round(min(100, progress), 2),
                'is_achieved': actual >= goal.monthly_target,
                'motivational_message': get_savings_motivational_message(progress, goal.name)
            })

        savings_rate = (actual_savings / income_baseline * 100) if income_baseline > 0 else 0
        category_budgets.sort(key=lambda c: (not c['is_essential'], c['category_name']))

        return {
            'current_period': period.name,
            'period_description': period.description or "",
            'monthly_income': income_baseline,
            'total_budgeted': round(total_budgeted, 2),
            'total_spent': round(total_spent, 2),
            'remaining_budget': round(total_budgeted - total_spent, 2),
            'savings_target': round(savings_target, 2),
            'actual_savings': round(actual_savings, 2),
            'savings_rate': round(savings_rate, 2),
            'days_left_in_month': days_left,
            'category_budgets': category_budgets,
            'savings_progress': savings_progress,
            'motivational_message': get_motivational_message(savings_rate, period.type)
        }, savings_rate

    def check_spending(self, category_id: int, amount: float, today: Optional[date] = None) -> Dict:
        """Simule l'impact d'une dépense sur le budget de la catégorie"""
        today = today or date.today()
        period = self.get_current_period()
        budget = self._find_limit(category_id, period)

        if budget is None:
            return {
                'is_allowed': True,
                'message': "No budget limit set for this category",
                'alert_level': None,
                'remaining_budget': 0,
                'new_percentage_used': 0,
                'encouragement': "Keep tracking your spending - you're doing great!"
            }

        month_spending = sum(e.amount for e in self._month_expenses(today, category_id))
        new_total = month_spending + amount
        new_percentage = (new_total / budget.monthly_limit * 100) if budget.monthly_limit > 0 else 0

        return {
            'is_allowed': True,
            'message': get_spending_check_message(budget.category.name, new_percentage, budget.is_essential),
            'alert_level': get_alert_level(new_percentage),
            'remaining_budget': round(budget.monthly_limit - new_total, 2),
            'new_percentage_used': round(new_percentage, 2),
            'encouragement': get_encouragement_message(new_percentage)
        }

    def get_financial_health(self, today: Optional[date] = None) -> Dict:
        today = today or date.today()
        month_income = self._month_income(today)
        month_expenses = sum(e.amount for e in self._month_expenses(today))

        income = month_income if month_income > 0 else self.monthly_income
        savings = income - month_expenses
        savings_rate = (savings / income * 100) if income > 0 else 0
        grade = get_financial_health_grade(savings_rate)

        return {
            'grade': grade,
            'savings_rate': round(savings_rate, 2),
            'score': round(calculate_financial_health_score(savings_rate), 2),
            'message': get_health_message(grade, savings_rate),
            'achievements': get_achievements(savings_rate),
            'recommendations': get_recommendations(savings_rate),
            'is_on_track': savings_rate >= 20
        }

    def get_savings_celebration(self, today: Optional[date] = None) -> Dict:
        status, savings_rate = self._budget_status(today or date.today())
        return {
            'message': get_celebration_message(savings_rate),
            'savings_rate': round(savings_rate, 2),
            'savings_amount': status['actual_savings'],
            'achievements': get_celebration_badges(savings_rate),
            'encouragement': "Your future self will thank you for every dollar saved today! 💫"
        }

    # Alertes

    def get_active_alerts(self) -> List[SpendingAlertModel]:
        return self.db.query(SpendingAlertModel).filter(
            SpendingAlertModel.is_active == True,  # noqa: E712
            SpendingAlertModel.is_read == False  # noqa: E712
        ).order_by(SpendingAlertModel.created_at.desc(), SpendingAlertModel.id.desc()).all()

    def mark_alert_read(self, alert_id: int) -> Optional[SpendingAlertModel]:
        alert = self.db.query(SpendingAlertModel).filter(SpendingAlertModel.id == alert_id).first()
        if not alert:
            return None
        alert.is_read = True
        self.db.commit()
        self.db.refresh(alert)
        return alert

    def record_spending_alert(self, expense: ExpenseModel, today: Optional[date] = None) -> Optional[SpendingAlertModel]:
        """
        Enregistre une alerte quand la dépense fait franchir un palier au budget
        de sa catégorie pour le mois en cours. Une seule alerte active par
        catégorie et par palier dans le mois.
        """
        today = today or date.today()
        if (expense.date.year, expense.date.month) != (today.year, today.month):
            return None

        period = self.find_current_period()
        if period is None:
            return None
        budget = self._find_limit(expense.category_id, period)
        if budget is None or budget.monthly_limit <= 0:
            return None

        spent = sum(e.amount for e in self._month_expenses(today, expense.category_id))
        percentage = spent / budget.monthly_limit * 100
        level = get_alert_level(percentage)
        if level is None:
            return None

        month_start = datetime(today.year, today.month, 1)
        existing = self.db.query(SpendingAlertModel).filter(
            SpendingAlertModel.category_id == expense.category_id,
            SpendingAlertModel.type == level.value,
            SpendingAlertModel.is_active == True,  # noqa: E712
            SpendingAlertModel.created_at >= month_start
        ).first()
        if existing:
            return None

        alert = SpendingAlertModel(
            category_id=expense.category_id,
            type=level.value,
            message=get_spending_check_message(budget.category.name, percentage, budget.is_essential),
            current_spending=round(spent, 2),
            budget_limit=budget.monthly_limit,
            percentage_used=round(percentage, 2),
            created_at=datetime.utcnow()
        )
        self.db.add(alert)
        self.db.commit()
        self.db.refresh(alert)
        return alert

    # Limites et catégories

    def get_budget_limits(self) -> List[Dict]:
        period = self.get_current_period()
        limits = [
            {
                'category_id': bl.category_id,
                'category_name': bl.category.name,
                'monthly_limit': bl.monthly_limit,
                'is_essential': bl.is_essential,
                'is_custom': not bl.category.is_system,
                'icon': bl.category.icon
            }
            for bl in self._period_limits(period)
        ]
        return sorted(limits, key=lambda l: (not l['is_essential'], l['category_name']))

    def get_spending_categories(self) -> List[Dict]:
        categories = self.db.query(SpendingCategoryModel).all()
        categories.sort(key=lambda c: (0 if c.is_system else 1, c.name))
        return [
            {
                'id': c.id,
                'name': c.name,
                'icon': c.icon,
                'is_custom': not c.is_system,
                'is_essential_default': c.is_essential_default
            }
            for c in categories
        ]

    def create_custom_category(self, name: str, monthly_limit: float, is_essential: bool) -> Dict:
        if not name or not name.strip():
            raise ValueError("Category name is required")
        sanitized = name.strip()
        if crud.get_category_by_name(self.db, sanitized):
            raise ValueError(f"A category named '{sanitized}' already exists.")

        period = self.get_current_period()
        category = SpendingCategoryModel(
            name=sanitized,
            icon="category",
            is_system=False,
            is_essential_default=is_essential
        )
        self.db.add(category)
        self.db.flush()
        self.db.add(BudgetLimitModel(
            category_id=category.id,
            financial_period_id=period.id,
            monthly_limit=monthly_limit,
            is_essential=is_essential
        ))
        self.db.commit()
        logger.info(f"Catégorie personnalisée créée: {sanitized}")

        return {
            'category_id': category.id,
            'category_name': category.name,
            'limit': monthly_limit,
            'spent': 0,
            'remaining': monthly_limit,
            'percentage_used': 0,
            'daily_recommendation': 0,
            'is_essential': is_essential,
            'is_custom': True,
            'icon': category.icon,
            'status': get_category_status(0),
            'status_color': get_status_color(0)
        }

    def update_category_limit(self, category_id: int, new_limit: float,
                              is_essential: Optional[bool] = None, name: Optional[str] = None):
        period = self.get_current_period()
        budget = self._find_limit(category_id, period)
        if budget is None:
            raise NotFoundError(f"No budget limit found for category id {category_id} in the current period.")

        budget.monthly_limit = new_limit
        if is_essential is not None:
            budget.is_essential = is_essential
        # Seules les catégories personnalisées peuvent être renommées
        if name and name.strip() and not budget.category.is_system:
            other = crud.get_category_by_name(self.db, name.strip())
            if other and other.id != category_id:
                raise ValueError(f"A category named '{name.strip()}' already exists.")
            budget.category.name = name.strip()
            budget.category.updated_at = datetime.utcnow()
        self.db.commit()
        return budget
