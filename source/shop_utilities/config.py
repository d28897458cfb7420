"""Environment configuration shared by the jobs."""

import os
from dotenv import load_dotenv

# Load environment
load_dotenv(".env")

# Database connection parameters
DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "postgres")
DB_PORT = os.getenv("POSTGRES_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "postgres")

# Database connection URL, DATABASE_URL wins when set
DB_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# Connection polling
DB_MAX_RETRIES = int(os.getenv("DB_MAX_RETRIES", "20"))
DB_RETRY_DELAY = int(os.getenv("DB_RETRY_DELAY", "2"))

# Paths
DATA_DIR = os.getenv("DATA_DIR", "/app/data/")
REPORT_OUTPUT_DIR = os.getenv("REPORT_OUTPUT_DIR", "/app/reports/")

# Report parameters, empty means "today" / "current month"
REPORT_DAY = os.getenv("REPORT_DAY", "")
REPORT_MONTH = os.getenv("REPORT_MONTH", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Synthetic dataset scale
GENERATOR_CATEGORIES = int(os.getenv("GENERATOR_CATEGORIES", "20"))
GENERATOR_PRODUCTS = int(os.getenv("GENERATOR_PRODUCTS", "1000"))
GENERATOR_CUSTOMERS = int(os.getenv("GENERATOR_CUSTOMERS", "5000"))
GENERATOR_ORDERS = int(os.getenv("GENERATOR_ORDERS", "20000"))
GENERATOR_MAX_LINES = int(os.getenv("GENERATOR_MAX_LINES", "5"))
GENERATOR_BATCH_SIZE = int(os.getenv("GENERATOR_BATCH_SIZE", "1000"))
GENERATOR_SEED = os.getenv("GENERATOR_SEED")
