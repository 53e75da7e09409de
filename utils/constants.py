DB_FILE = "expenses.db"
DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"

# Budget / category-limit status thresholds, in percent of the limit
WARNING_THRESHOLD = 75.0
EXCEEDED_THRESHOLD = 100.0
# Reported when a non-positive limit has any spending against it
OVER_LIMIT_PERCENTAGE = 999.0

STATUS_SAFE = "safe"
STATUS_WARNING = "warning"
STATUS_EXCEEDED = "exceeded"

BUDGET_PERIODS = ("weekly", "monthly", "quarterly", "custom")

INTERVAL_OPTIONS = (7, 15, 30)
NOTIFICATION_OPTIONS = (1, 3, 7)
MIN_DAY_OF_MONTH = 1
MAX_DAY_OF_MONTH = 31

# Executions per month used for the recurring projection
MONTHLY_EXECUTIONS = {
    7: 4.33,
    15: 2,
    30: 1,
}

# Upper bound (inclusive) of days overdue for each priority; anything above is 'urgent'
OVERDUE_PRIORITY_DAYS = (
    (3, "low"),
    (7, "medium"),
    (14, "high"),
)

MAX_EMERGENCY_BUFFER_PERCENT = 50.0
DEFAULT_EMERGENCY_BUFFER_PERCENT = 10.0
BUDGET_SETTINGS_KEY = "budget_settings"

# Hours before the same budget alert may be raised again
ALERT_COOLDOWN_HOURS = {
    "warning_75": 24,
    "warning_90": 12,
    "exceeded_100": 6,
    "daily_limit": 24,
    "monthly_prediction": 24 * 7,
}
CRITICAL_WARNING_THRESHOLD = 90.0
DAILY_LIMIT_OVERSPEND_FACTOR = 1.5
MONTHLY_PREDICTION_OVERSPEND_FACTOR = 1.1
MONTHLY_PREDICTION_MIN_DAYS_REMAINING = 7
MAX_STORED_ALERTS = 50

PREDICTION_THRESHOLDS = {
    # weekly trend: confidence from absolute % change vs the previous week
    "weekly_high_confidence_change": 20.0,
    "weekly_medium_confidence_change": 40.0,
    "weekly_trend_damping": 0.5,
    # monthly projection: confidence from day of month
    "monthly_high_confidence_day": 15,
    "monthly_medium_confidence_day": 7,
    # dominant category share that triggers a diversification hint
    "category_concentration_percent": 40.0,
    # projected total must exceed the budget by this factor to warn
    "budget_overrun_factor": 1.05,
    "budget_overrun_medium_days_remaining": 10,
    "lookback_months": 3,
}

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

SEVERITY_ORDER = {"error": 0, "warning": 1, "info": 2}

REPORT_FORMATS = ("json", "csv", "detailed")
PERIOD_LABELS = {
    "weekly": "Weekly",
    "monthly": "Monthly",
    "quarterly": "Quarterly",
    "custom": "Custom",
}
