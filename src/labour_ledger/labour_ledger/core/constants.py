"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20

EXPORT_ROW_LIMIT = 10_000

DASHBOARD_TREND_DAYS = 7
DASHBOARD_WORKERS = 7

# MySQL server error ER_DUP_ENTRY
MYSQL_DUPLICATE_KEY = 1062

# Upper bounds of the storage columns (signed INT, DECIMAL(12,2), DECIMAL(14,2))
MAX_INT_COLUMN = 2_147_483_647
MAX_REFERENCE_ID = MAX_INT_COLUMN
MAX_DAILY_WAGE = Decimal("9999999999.99")
MAX_SALARY_TOTAL = Decimal("999999999999.99")
MONEY_STEP = Decimal("0.01")

MAX_PAGE = 1_000_000
