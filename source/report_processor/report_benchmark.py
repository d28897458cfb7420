"""Times the reports against base tables and against the summary tables."""

import time
from datetime import date

import pandas as pd
from sqlalchemy.orm import Session

from shop_utilities.config import DB_URL, DB_MAX_RETRIES, DB_RETRY_DELAY, REPORT_DAY, REPORT_MONTH
from shop_utilities.logger import Logger
from shop_utilities.tools import create_db_engine, wait_for_database
from report_processor.report_exporter import build_reports
from report_processor.report_processor import ReportProcessor, parse_day, parse_month

logger = Logger.get_logger(__name__)


class ReportBenchmark:
    """Measures report execution times over repeated runs."""

    def __init__(self, session: Session, repeat: int = 3, report_day=None, report_month=None):
        if repeat <= 0:
            raise ValueError(f"repeat must be positive, got {repeat}")
        self.session = session
        self.repeat = repeat
        self.report_day = parse_day(report_day or date.today())
        self.report_month = parse_month(report_month or date.today())[2]
        self.processor = ReportProcessor(session)

    def _time(self, report) -> list:
        timings = []
        for _ in range(self.repeat):
            started = time.perf_counter()
            report()
            timings.append(time.perf_counter() - started)
        return timings

    def _summary_reports(self):
        return {
            "monthly_top_selling_products": lambda: self.processor.monthly_top_selling_products(
                self.report_month, from_summary=True
            ),
            "top_customers_by_lifetime_spend": lambda: self.processor.top_customers_by_lifetime_spend(
                from_summary=True
            ),
            "category_revenue": lambda: self.processor.category_revenue(from_summary=True),
        }

    def run(self, include_summary: bool = False) -> pd.DataFrame:
        """
        Time every report.

        With `include_summary` the summary-backed variants are timed as well,
        so both rows appear side by side under the `source` column.
        """
        records = []
        reports = build_reports(self.processor, self.report_day, self.report_month)
        for name, report in reports.items():
            timings = self._time(report)
            records.append(self._record(name, "base", timings))

        if include_summary:
            for name, report in self._summary_reports().items():
                timings = self._time(report)
                records.append(self._record(name, "summary", timings))

        frame = pd.DataFrame(records).sort_values(["report", "source"]).reset_index(drop=True)
        for row in frame.itertuples(index=False):
            logger.info(
                f"{row.report} [{row.source}]: best {row.best_seconds:.4f}s, "
                f"mean {row.mean_seconds:.4f}s over {row.runs} runs"
            )
        return frame

    def _record(self, name: str, source: str, timings: list) -> dict:
        return {
            "report": name,
            "source": source,
            "runs": len(timings),
            "best_seconds": min(timings),
            "mean_seconds": sum(timings) / len(timings),
        }


if __name__ == "__main__":
    engine = create_db_engine(DB_URL)
    if wait_for_database(engine, max_retries=DB_MAX_RETRIES, delay=DB_RETRY_DELAY):
        with Session(engine) as session:
            benchmark = ReportBenchmark(
                session, report_day=REPORT_DAY, report_month=REPORT_MONTH
            )
            timings = benchmark.run(include_summary=True)
            logger.info(f"Report timings:\n{timings.to_string(index=False)}")
