"""Denormalized and precomputed summary tables, rebuilt out-of-band."""

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Index
from sqlalchemy.orm import declarative_base

# Kept apart from the base schema so create_schema() only builds the core tables
SummaryBase = declarative_base()


class OrderLineFact(SummaryBase):
    """
    One row per order detail line, joined with its order, product and category.
    """

    __tablename__ = "order_line_facts"
    __table_args__ = (
        Index("ix_order_line_facts_order_date", "order_date"),
        Index("ix_order_line_facts_category_id", "category_id"),
    )

    order_detail_id = Column(Integer, primary_key=True, autoincrement=False)
    order_id = Column(Integer, nullable=False)
    order_date = Column(DateTime, nullable=False)
    customer_id = Column(Integer, nullable=False)
    product_id = Column(Integer, nullable=False)
    product_name = Column(String(100), nullable=False)
    category_id = Column(Integer, nullable=True)
    category_name = Column(String(50), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)

    def __repr__(self):
        return f"<OrderLineFact(detail_id={self.order_detail_id}, product='{self.product_name}')>"


class MonthlyProductSales(SummaryBase):
    """
    Quantity sold per product and calendar month (YYYY-MM).
    """

    __tablename__ = "monthly_product_sales"

    sales_month = Column(String(7), primary_key=True)
    product_id = Column(Integer, primary_key=True, autoincrement=False)
    product_name = Column(String(100), nullable=False)
    total_quantity = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<MonthlyProductSales(month='{self.sales_month}', product_id={self.product_id}, quantity={self.total_quantity})>"


class CustomerSpendSummary(SummaryBase):
    """
    Lifetime order count and spend per customer.
    """

    __tablename__ = "customer_spend_summary"

    customer_id = Column(Integer, primary_key=True, autoincrement=False)
    order_count = Column(Integer, nullable=False)
    lifetime_spend = Column(Numeric(14, 2), nullable=False)

    def __repr__(self):
        return f"<CustomerSpendSummary(customer_id={self.customer_id}, spend={self.lifetime_spend})>"
