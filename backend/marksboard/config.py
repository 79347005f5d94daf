"""
Runtime configuration read from environment variables.

All settings are resolved once at import time. Defaults target local
development with SQLite; Docker/production deployments override them.
"""

import os

# Database connection string (PostgreSQL in production, SQLite fallback)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./marksboard.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Comma separated list of allowed frontend origins
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# Graduation year window: [MIN_GRADUATION_YEAR, current year + GRADUATION_YEAR_SPAN]
MIN_GRADUATION_YEAR = int(os.getenv("MIN_GRADUATION_YEAR", "2024"))
GRADUATION_YEAR_SPAN = int(os.getenv("GRADUATION_YEAR_SPAN", "10"))

# Cohort labels a student may be assigned to
STUDENT_BATCHES = tuple(
    batch.strip()
    for batch in os.getenv("STUDENT_BATCHES", "B1,B2,B3,B4").split(",")
    if batch.strip()
)

SERVICE_NAME = "marksboard-backend"
SERVICE_VERSION = "1.0.0"
