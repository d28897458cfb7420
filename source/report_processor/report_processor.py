"""Read-only reporting queries over the order store."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from sqlalchemy import Numeric, func
from sqlalchemy.orm import Session

from shop_utilities.exceptions import InvalidReportArgument
from shop_utilities.logger import Logger
from shop_utilities.models import Category, Customer, Order, OrderDetail, Product
from shop_utilities.summaries import (
    CustomerSpendSummary,
    MonthlyProductSales,
    OrderLineFact,
)

logger = Logger.get_logger(__name__)

UNCATEGORIZED = "Uncategorized"
CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Normalize an aggregated amount to a Decimal with cents."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_day(value) -> date:
    """Accept a date, a datetime or a YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError as e:
            raise InvalidReportArgument(
                f"Invalid day '{value}', expected YYYY-MM-DD"
            ) from e
    raise InvalidReportArgument(f"Invalid day {value!r}, expected a date")


def parse_month(value) -> Tuple[datetime, datetime, str]:
    """
    Resolve a month to its half-open range.

    Accepts a YYYY-MM string or any date inside the month and returns
    (first instant of the month, first instant of the next month, "YYYY-MM").
    """
    if isinstance(value, str):
        try:
            start = datetime.strptime(value, "%Y-%m")
        except ValueError as e:
            raise InvalidReportArgument(
                f"Invalid month '{value}', expected YYYY-MM"
            ) from e
    elif isinstance(value, date):
        start = datetime(value.year, value.month, 1)
    else:
        raise InvalidReportArgument(f"Invalid month {value!r}, expected YYYY-MM")

    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end, start.strftime("%Y-%m")


def check_limit(limit) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise InvalidReportArgument(f"Limit must be a positive integer, got {limit!r}")
    return limit


def check_threshold(threshold) -> Decimal:
    if isinstance(threshold, bool):
        raise InvalidReportArgument(f"Invalid threshold {threshold!r}")
    try:
        value = Decimal(str(threshold))
    except (InvalidOperation, ValueError) as e:
        raise InvalidReportArgument(f"Invalid threshold {threshold!r}") from e
    if not value.is_finite() or value < 0:
        raise InvalidReportArgument(f"Threshold must be non-negative, got {threshold!r}")
    return value


class ReportProcessor:
    """
    Runs the reporting queries against one session.

    Every report is a pure read: it issues SELECT statements only and returns
    a list of dict rows in a fixed order. Date filters are half-open ranges on
    the raw order_date column so the order_date indexes stay usable.
    """

    def __init__(self, session: Session):
        self.session = session

    def daily_revenue(self, day) -> List[Dict[str, Any]]:
        """Total order amount for orders placed within one calendar day."""
        day = parse_day(day)
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)

        total = (
            self.session.query(func.sum(Order.total_amount))
            .filter(Order.order_date >= start, Order.order_date < end)
            .scalar()
        )
        logger.debug(f"Daily revenue for {day}: {total}")
        return [{"order_day": day, "total_revenue": to_money(total)}]

    def monthly_top_selling_products(
        self, month, from_summary: bool = False
    ) -> List[Dict[str, Any]]:
        """Quantity sold per product in a month, best sellers first."""
        start, end, label = parse_month(month)

        if from_summary:
            rows = (
                self.session.query(
                    MonthlyProductSales.product_id,
                    MonthlyProductSales.product_name,
                    MonthlyProductSales.total_quantity,
                )
                .filter(MonthlyProductSales.sales_month == label)
                .order_by(
                    MonthlyProductSales.total_quantity.desc(),
                    MonthlyProductSales.product_id,
                )
                .all()
            )
        else:
            total_quantity = func.sum(OrderDetail.quantity)
            rows = (
                self.session.query(Product.product_id, Product.name, total_quantity)
                .join(OrderDetail, OrderDetail.product_id == Product.product_id)
                .join(Order, Order.order_id == OrderDetail.order_id)
                .filter(Order.order_date >= start, Order.order_date < end)
                .group_by(Product.product_id, Product.name)
                .order_by(total_quantity.desc(), Product.product_id)
                .all()
            )

        return [
            {
                "month": label,
                "product_id": product_id,
                "product_name": name,
                "total_quantity": int(quantity),
            }
            for product_id, name, quantity in rows
        ]

    def high_spending_customers(
        self, now: Optional[datetime] = None, threshold=500
    ) -> List[Dict[str, Any]]:
        """
        Customers whose spend over the trailing calendar month exceeds the threshold.

        The window is [now - 1 month, now]. Spend equal to the threshold does
        not qualify.
        """
        if now is None:
            now = datetime.now()
        elif not isinstance(now, datetime):
            raise InvalidReportArgument(f"Invalid reference time {now!r}")
        threshold = check_threshold(threshold)
        start = (pd.Timestamp(now) - pd.DateOffset(months=1)).to_pydatetime()

        # Aggregate on the customer key alone, then attach the customer columns.
        # Sums are rounded to cents so float-backed engines compare exact amounts.
        total_spent = func.round(func.sum(Order.total_amount), 2, type_=Numeric(14, 2))
        spend = (
            self.session.query(
                Order.customer_id.label("customer_id"),
                total_spent.label("total_spent"),
            )
            .filter(Order.order_date >= start, Order.order_date <= now)
            .group_by(Order.customer_id)
            .having(total_spent > threshold)
            .subquery()
        )
        rows = (
            self.session.query(
                Customer.customer_id,
                Customer.first_name,
                Customer.last_name,
                Customer.email,
                spend.c.total_spent,
            )
            .join(spend, spend.c.customer_id == Customer.customer_id)
            .order_by(spend.c.total_spent.desc(), Customer.customer_id)
            .all()
        )

        return [
            {
                "customer_id": customer_id,
                "first_name": first_name,
                "last_name": last_name,
                "email": email,
                "total_spent": to_money(total),
            }
            for customer_id, first_name, last_name, email, total in rows
        ]

    def category_product_counts(self) -> List[Dict[str, Any]]:
        """Number of products in every category, empty categories included."""
        product_count = func.count(Product.product_id)
        rows = (
            self.session.query(Category.category_id, Category.name, product_count)
            .outerjoin(Product, Product.category_id == Category.category_id)
            .group_by(Category.category_id, Category.name)
            .order_by(Category.name)
            .all()
        )
        report = [
            {"category_id": category_id, "category_name": name, "product_count": count}
            for category_id, name, count in rows
        ]

        uncategorized = (
            self.session.query(func.count(Product.product_id))
            .filter(Product.category_id.is_(None))
            .scalar()
        )
        if uncategorized:
            report.append(
                {
                    "category_id": None,
                    "category_name": UNCATEGORIZED,
                    "product_count": uncategorized,
                }
            )
        return report

    def top_customers_by_lifetime_spend(
        self, limit: int = 10, from_summary: bool = False
    ) -> List[Dict[str, Any]]:
        """Customers ranked by the sum of all their orders."""
        limit = check_limit(limit)

        if from_summary:
            spend = (
                self.session.query(
                    CustomerSpendSummary.customer_id.label("customer_id"),
                    CustomerSpendSummary.lifetime_spend.label("lifetime_spend"),
                )
                .subquery()
            )
        else:
            spend = (
                self.session.query(
                    Order.customer_id.label("customer_id"),
                    func.round(
                        func.sum(Order.total_amount), 2, type_=Numeric(14, 2)
                    ).label("lifetime_spend"),
                )
                .group_by(Order.customer_id)
                .subquery()
            )

        rows = (
            self.session.query(
                Customer.customer_id,
                Customer.first_name,
                Customer.last_name,
                Customer.email,
                spend.c.lifetime_spend,
            )
            .join(spend, spend.c.customer_id == Customer.customer_id)
            .order_by(spend.c.lifetime_spend.desc(), Customer.customer_id)
            .limit(limit)
            .all()
        )

        return [
            {
                "customer_id": customer_id,
                "first_name": first_name,
                "last_name": last_name,
                "email": email,
                "lifetime_spend": to_money(total),
            }
            for customer_id, first_name, last_name, email, total in rows
        ]

    def recent_orders(self, limit: int = 1000) -> List[Dict[str, Any]]:
        """Latest orders with the placing customer's name and email."""
        limit = check_limit(limit)
        rows = (
            self.session.query(
                Order.order_id,
                Order.order_date,
                Order.total_amount,
                Customer.customer_id,
                Customer.first_name,
                Customer.last_name,
                Customer.email,
            )
            .join(Customer, Customer.customer_id == Order.customer_id)
            .order_by(Order.order_date.desc(), Order.order_id.desc())
            .limit(limit)
            .all()
        )

        return [
            {
                "order_id": order_id,
                "order_date": order_date,
                "total_amount": to_money(total),
                "customer_id": customer_id,
                "first_name": first_name,
                "last_name": last_name,
                "email": email,
            }
            for order_id, order_date, total, customer_id, first_name, last_name, email in rows
        ]

    def low_stock_products(self, threshold: int = 10) -> List[Dict[str, Any]]:
        """Products whose stock is below the threshold, scarcest first."""
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
            raise InvalidReportArgument(
                f"Stock threshold must be a non-negative integer, got {threshold!r}"
            )
        rows = (
            self.session.query(Product.product_id, Product.name, Product.stock_quantity)
            .filter(Product.stock_quantity < threshold)
            .order_by(Product.stock_quantity, Product.product_id)
            .all()
        )
        return [
            {"product_id": product_id, "product_name": name, "stock_quantity": stock}
            for product_id, name, stock in rows
        ]

    def category_revenue(self, from_summary: bool = False) -> List[Dict[str, Any]]:
        """Revenue (quantity x unit price) per category, categories without sales included."""
        if from_summary:
            revenue = func.sum(OrderLineFact.line_total)
            rows = (
                self.session.query(Category.category_id, Category.name, revenue)
                .outerjoin(
                    OrderLineFact, OrderLineFact.category_id == Category.category_id
                )
                .group_by(Category.category_id, Category.name)
                .order_by(Category.name)
                .all()
            )
            uncategorized = (
                self.session.query(revenue)
                .filter(OrderLineFact.category_id.is_(None))
                .scalar()
            )
        else:
            revenue = func.sum(OrderDetail.quantity * OrderDetail.unit_price)
            rows = (
                self.session.query(Category.category_id, Category.name, revenue)
                .outerjoin(Product, Product.category_id == Category.category_id)
                .outerjoin(OrderDetail, OrderDetail.product_id == Product.product_id)
                .group_by(Category.category_id, Category.name)
                .order_by(Category.name)
                .all()
            )
            uncategorized = (
                self.session.query(revenue)
                .select_from(OrderDetail)
                .join(Product, Product.product_id == OrderDetail.product_id)
                .filter(Product.category_id.is_(None))
                .scalar()
            )

        report = [
            {
                "category_id": category_id,
                "category_name": name,
                "total_revenue": to_money(total),
            }
            for category_id, name, total in rows
        ]
        if uncategorized is not None:
            report.append(
                {
                    "category_id": None,
                    "category_name": UNCATEGORIZED,
                    "total_revenue": to_money(uncategorized),
                }
            )
        return report
