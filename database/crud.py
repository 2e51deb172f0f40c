from sqlalchemy.orm import Session
from database.models import (
    ExpenseModel, IncomeModel, SpendingCategoryModel, TotalSavingsModel, SavingsGoalModel
)
from models.expense import ExpenseCreate, ExpenseUpdate
from models.income import IncomeCreate
from models.savings import TotalSavingsCreate
from models.budget import SavingsGoalCreate
from datetime import datetime

def _between(query, column, start_date=None, end_date=None):
    if start_date is not None:
        query = query.filter(column >= start_date)
    if end_date is not None:
        query = query.filter(column <= end_date)
    return query

# Catégories
def get_category(db: Session, category_id: int):
    """Récupère une catégorie par son ID"""
    return db.query(SpendingCategoryModel).filter(SpendingCategoryModel.id == category_id).first()

def get_category_by_name(db: Session, name: str):
    """Récupère une catégorie par son nom"""
    return db.query(SpendingCategoryModel).filter(SpendingCategoryModel.name == name).first()

# Dépenses
def create_expense(db: Session, expense: ExpenseCreate):
    """Crée une nouvelle dépense"""
    db_expense = ExpenseModel(**expense.model_dump(), created_at=datetime.utcnow())
    db.add(db_expense)
    db.commit()
    db.refresh(db_expense)
    return db_expense

def get_expenses(db: Session, start_date=None, end_date=None):
    """Récupère les dépenses (bornes incluses), les plus récentes d'abord"""
    query = _between(db.query(ExpenseModel), ExpenseModel.date, start_date, end_date)
    return query.order_by(ExpenseModel.date.desc(), ExpenseModel.id.desc()).all()

def get_expense_by_id(db: Session, expense_id: int):
    """Récupère une dépense par son ID"""
    return db.query(ExpenseModel).filter(ExpenseModel.id == expense_id).first()

def update_expense(db: Session, expense_id: int, expense_update: ExpenseUpdate):
    """Met à jour une dépense"""
    expense = get_expense_by_id(db, expense_id)
    if not expense:
        return None
    for field, value in expense_update.model_dump().items():
        setattr(expense, field, value)
    expense.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(expense)
    return expense

def delete_expense(db: Session, expense_id: int):
    """Supprime une dépense"""
    expense = get_expense_by_id(db, expense_id)
    if not expense:
        return False
    db.delete(expense)
    db.commit()
    return True

# Revenus
def create_income(db: Session, income: IncomeCreate):
    """Crée un nouveau revenu"""
    db_income = IncomeModel(**income.model_dump())
    db.add(db_income)
    db.commit()
    db.refresh(db_income)
    return db_income

def get_incomes(db: Session, start_date=None, end_date=None):
    """Récupère les revenus (bornes incluses), les plus récents d'abord"""
    query = _between(db.query(IncomeModel), IncomeModel.date, start_date, end_date)
    return query.order_by(IncomeModel.date.desc(), IncomeModel.id.desc()).all()

def get_income_by_id(db: Session, income_id: int):
    """Récupère un revenu par son ID"""
    return db.query(IncomeModel).filter(IncomeModel.id == income_id).first()

def update_income(db: Session, income_id: int, income_update: IncomeCreate):
    """Met à jour un revenu"""
    income = get_income_by_id(db, income_id)
    if not income:
        return None
    for field, value in income_update.model_dump().items():
        setattr(income, field, value)
    db.commit()
    db.refresh(income)
    return income

def delete_income(db: Session, income_id: int):
    """Supprime un revenu"""
    income = get_income_by_id(db, income_id)
    if not income:
        return False
    db.delete(income)
    db.commit()
    return True

# Épargne totale (saisie manuelle)
def create_total_savings(db: Session, savings: TotalSavingsCreate):
    """Ajoute une entrée d'épargne"""
    db_savings = TotalSavingsModel(**savings.model_dump(), created_at=datetime.utcnow())
    db.add(db_savings)
    db.commit()
    db.refresh(db_savings)
    return db_savings

def get_all_total_savings(db: Session, start_date=None, end_date=None):
    """Récupère les entrées d'épargne, les plus récentes d'abord"""
    query = _between(db.query(TotalSavingsModel), TotalSavingsModel.date, start_date, end_date)
    return query.order_by(TotalSavingsModel.date.desc(), TotalSavingsModel.id.desc()).all()

def get_total_savings_by_id(db: Session, savings_id: int):
    return db.query(TotalSavingsModel).filter(TotalSavingsModel.id == savings_id).first()

def update_total_savings(db: Session, savings_id: int, savings_update: TotalSavingsCreate):
    """Met à jour une entrée d'épargne"""
    savings = get_total_savings_by_id(db, savings_id)
    if not savings:
        return None
    for field, value in savings_update.model_dump().items():
        setattr(savings, field, value)
    savings.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(savings)
    return savings

def delete_total_savings(db: Session, savings_id: int):
    savings = get_total_savings_by_id(db, savings_id)
    if not savings:
        return False
    db.delete(savings)
    db.commit()
    return True

# Objectifs d'épargne
def get_savings_goals(db: Session, financial_period_id: int):
    """Récupère les objectifs d'épargne d'une période"""
    return db.query(SavingsGoalModel).filter(
        SavingsGoalModel.financial_period_id == financial_period_id
    ).order_by(SavingsGoalModel.id).all()

def get_savings_goal_by_id(db: Session, goal_id: int):
    return db.query(SavingsGoalModel).filter(SavingsGoalModel.id == goal_id).first()

def create_savings_goal(db: Session, goal: SavingsGoalCreate, financial_period_id: int):
    """Crée un objectif d'épargne rattaché à une période"""
    db_goal = SavingsGoalModel(
        type=goal.type.value,
        name=goal.name,
        monthly_target=goal.monthly_target,
        is_required=goal.is_required,
        financial_period_id=financial_period_id,
        created_at=datetime.utcnow()
    )
    db.add(db_goal)
    db.commit()
    db.refresh(db_goal)
    return db_goal

def update_savings_goal(db: Session, goal_id: int, goal_update: SavingsGoalCreate):
    """Met à jour un objectif d'épargne"""
    goal = get_savings_goal_by_id(db, goal_id)
    if not goal:
        return None
    goal.type = goal_update.type.value
    goal.name = goal_update.name
    goal.monthly_target = goal_update.monthly_target
    goal.is_required = goal_update.is_required
    db.commit()
    db.refresh(goal)
    return goal

def delete_savings_goal(db: Session, goal_id: int):
    goal = get_savings_goal_by_id(db, goal_id)
    if not goal:
        return False
    db.delete(goal)
    db.commit()
    return True
