import os

# In a real deployment, load from environment variables or a config file
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite://./storestats.sqlite3")

SECRET_KEY: str = os.getenv(
    "SECRET_KEY", "your-secret-key-for-jwt-!ChangeMe!"
)
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Reports
REPORT_CACHE_TTL_SECONDS: int = int(os.getenv("REPORT_CACHE_TTL_SECONDS", str(12 * 60 * 60)))
REPORT_CACHE_PREFIX: str = os.getenv("REPORT_CACHE_PREFIX", "storestats_")
DEFAULT_REPORT_WINDOW_DAYS: int = 30
DEFAULT_REPORT_LIMIT: int = 10

# Only these order statuses contribute to sales figures
REPORTABLE_ORDER_STATUSES: tuple[str, ...] = ("completed", "processing")

# Roles that hold the "manage store" capability
STORE_MANAGER_ROLES: tuple[str, ...] = ("admin", "shop_manager")
