"""Script to run every report and export the results as CSV files."""

import os
from datetime import date
from typing import Callable, Dict, List

import pandas as pd
from sqlalchemy.orm import Session

from shop_utilities.config import (
    DB_URL,
    DB_MAX_RETRIES,
    DB_RETRY_DELAY,
    REPORT_DAY,
    REPORT_MONTH,
    REPORT_OUTPUT_DIR,
)
from shop_utilities.logger import Logger
from shop_utilities.tools import create_db_engine, wait_for_database
from report_processor.report_processor import ReportProcessor, parse_day, parse_month

# Set up logger
logger = Logger.get_logger(__name__)


def build_reports(processor: ReportProcessor, report_day, report_month) -> Dict[str, Callable[[], List[Dict]]]:
    """Map each report name to a call with its parameters bound."""
    return {
        "daily_revenue": lambda: processor.daily_revenue(report_day),
        "monthly_top_selling_products": lambda: processor.monthly_top_selling_products(report_month),
        "high_spending_customers": processor.high_spending_customers,
        "category_product_counts": processor.category_product_counts,
        "top_customers_by_lifetime_spend": processor.top_customers_by_lifetime_spend,
        "recent_orders": processor.recent_orders,
        "low_stock_products": processor.low_stock_products,
        "category_revenue": processor.category_revenue,
    }


class ReportExporter:
    """
    Class to run the reports and write one CSV file per report.
    """

    def __init__(self, db_url: str, output_dir: str, report_day=None, report_month=None):
        self.db_url = db_url
        self.output_dir = output_dir
        # Validate up front so a bad parameter fails before any query runs
        self.report_day = parse_day(report_day or date.today())
        self.report_month = parse_month(report_month or date.today())[2]

    def export(self, session: Session) -> Dict[str, str]:
        """Run every report and write it to `<output_dir>/<report>.csv`."""
        os.makedirs(self.output_dir, exist_ok=True)
        processor = ReportProcessor(session)

        written = {}
        for name, report in build_reports(processor, self.report_day, self.report_month).items():
            frame = pd.DataFrame(report())
            path = os.path.join(self.output_dir, f"{name}.csv")
            frame.to_csv(path, index=False)
            written[name] = path
            logger.info(f"Exported {len(frame)} rows of {name} to {path}")
        return written

    def __call__(self) -> bool:
        """Main function to export"""
        engine = create_db_engine(self.db_url)

        # Wait for the database to be available
        if not wait_for_database(engine, max_retries=DB_MAX_RETRIES, delay=DB_RETRY_DELAY):
            return False

        with Session(engine) as session:
            self.export(session)
        logger.info("Report export completed successfully")
        return True


if __name__ == "__main__":
    report_exporter = ReportExporter(
        db_url=DB_URL,
        output_dir=REPORT_OUTPUT_DIR,
        report_day=REPORT_DAY,
        report_month=REPORT_MONTH,
    )
    report_exporter()
