from enum import Enum

class AlertType(str, Enum):
    INFO = "Info"            # 50% du budget
    WARNING = "Warning"      # 75%
    CRITICAL = "Critical"    # 90%
    EXCEEDED = "Exceeded"    # 100% et plus
    ACHIEVEMENT = "Achievement"

class FinancialPeriodType(str, Enum):
    DOUBLE_HOUSING = "DoubleHousingPeriod"
    NEW_HOME = "NewHomePeriod"

class SavingsGoalType(str, Enum):
    EMERGENCY_FUND = "EmergencyFund"
    INVESTMENTS = "Investments"
    HOUSE_FUTURE = "HouseFuture"
