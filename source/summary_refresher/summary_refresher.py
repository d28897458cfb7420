"""Script to rebuild the denormalized and precomputed summary tables."""

import pandas as pd
from sqlalchemy import Numeric, cast, delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shop_utilities.config import DB_URL, DB_MAX_RETRIES, DB_RETRY_DELAY
from shop_utilities.logger import Logger
from shop_utilities.models import Category, Order, OrderDetail, Product
from shop_utilities.summaries import (
    CustomerSpendSummary,
    MonthlyProductSales,
    OrderLineFact,
)
from shop_utilities.tools import (
    create_db_engine,
    create_schema,
    create_summary_schema,
    wait_for_database,
)

# Set up logger
logger = Logger.get_logger(__name__)


class SummaryRefresher:
    """
    Class to refresh the summary tables from the core tables.

    Each refresh replaces the whole table content. The caller owns the
    transaction; __call__ commits once after all tables are rebuilt.
    """

    def __init__(self, db_url: str):
        self.db_url = db_url

    def refresh_order_line_facts(self, session: Session) -> int:
        """Rebuild the order line table joined with order, product and category."""
        session.execute(delete(OrderLineFact))

        line_total = cast(OrderDetail.quantity * OrderDetail.unit_price, Numeric(12, 2))
        source = (
            select(
                OrderDetail.order_detail_id,
                Order.order_id,
                Order.order_date,
                Order.customer_id,
                Product.product_id,
                Product.name.label("product_name"),
                Category.category_id,
                Category.name.label("category_name"),
                OrderDetail.quantity,
                OrderDetail.unit_price,
                line_total,
            )
            .join(Order, Order.order_id == OrderDetail.order_id)
            .join(Product, Product.product_id == OrderDetail.product_id)
            .outerjoin(Category, Category.category_id == Product.category_id)
        )
        session.execute(
            insert(OrderLineFact).from_select(
                [
                    "order_detail_id",
                    "order_id",
                    "order_date",
                    "customer_id",
                    "product_id",
                    "product_name",
                    "category_id",
                    "category_name",
                    "quantity",
                    "unit_price",
                    "line_total",
                ],
                source,
            )
        )

        count = session.query(func.count(OrderLineFact.order_detail_id)).scalar()
        logger.info(f"Refreshed order_line_facts with {count} rows")
        return count

    def refresh_monthly_product_sales(self, session: Session) -> int:
        """Rebuild per-month product quantities from the order line table."""
        session.execute(delete(MonthlyProductSales))

        lines = pd.read_sql_query(
            select(
                OrderLineFact.order_date,
                OrderLineFact.product_id,
                OrderLineFact.product_name,
                OrderLineFact.quantity,
            ),
            session.connection(),
        )
        if lines.empty:
            logger.info("Refreshed monthly_product_sales with 0 rows")
            return 0

        lines["sales_month"] = pd.to_datetime(lines["order_date"]).dt.strftime("%Y-%m")
        monthly = (
            lines.groupby(["sales_month", "product_id", "product_name"], as_index=False)[
                "quantity"
            ]
            .sum()
            .rename(columns={"quantity": "total_quantity"})
        )

        records = [
            {
                "sales_month": row.sales_month,
                "product_id": int(row.product_id),
                "product_name": row.product_name,
                "total_quantity": int(row.total_quantity),
            }
            for row in monthly.itertuples(index=False)
        ]
        session.execute(insert(MonthlyProductSales), records)

        logger.info(f"Refreshed monthly_product_sales with {len(records)} rows")
        return len(records)

    def refresh_customer_spend(self, session: Session) -> int:
        """Rebuild lifetime order count and spend per customer."""
        session.execute(delete(CustomerSpendSummary))

        source = select(
            Order.customer_id,
            func.count(Order.order_id),
            func.sum(Order.total_amount),
        ).group_by(Order.customer_id)
        session.execute(
            insert(CustomerSpendSummary).from_select(
                ["customer_id", "order_count", "lifetime_spend"], source
            )
        )

        count = session.query(func.count(CustomerSpendSummary.customer_id)).scalar()
        logger.info(f"Refreshed customer_spend_summary with {count} rows")
        return count

    def refresh_all(self, session: Session) -> None:
        """Refresh every summary table; monthly sales depends on the line facts."""
        self.refresh_order_line_facts(session)
        self.refresh_monthly_product_sales(session)
        self.refresh_customer_spend(session)

    def __call__(self) -> bool:
        """Main function to refresh"""
        engine = create_db_engine(self.db_url)

        # Wait for the database to be available
        if not wait_for_database(engine, max_retries=DB_MAX_RETRIES, delay=DB_RETRY_DELAY):
            return False

        create_schema(engine=engine)
        create_summary_schema(engine=engine)

        with Session(engine) as session:
            try:
                self.refresh_all(session)
                session.commit()
                logger.info("Summary refresh completed successfully")
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Database error during summary refresh: {e}")
                raise
        return True


if __name__ == "__main__":
    summary_refresher = SummaryRefresher(db_url=DB_URL)
    summary_refresher()
