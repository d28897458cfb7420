"""Script to initialize the database, load CSV data, and insert records into the order store."""

import os
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Optional, Set

import pandas as pd
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shop_utilities.config import DB_URL, DATA_DIR, DB_MAX_RETRIES, DB_RETRY_DELAY
from shop_utilities.logger import Logger
from shop_utilities.models import Category, Customer, Order, OrderDetail, Product
from shop_utilities.tools import create_db_engine, create_schema, wait_for_database

# Set up logger
logger = Logger.get_logger(__name__)


def optional(value):
    """Map pandas missing values to None."""
    return None if pd.isna(value) else value


class DataInitializer:
    """
    Class to initialize database, load CSV data, and insert records.

    Tables are loaded in foreign key order. Rows whose primary key already
    exists are skipped, so the load can be repeated on a seeded database.
    """

    def __init__(self, db_url: str, data_dir: str):
        self.db_url = db_url
        self.data_dir = data_dir
        self.categories_csv = os.path.join(self.data_dir, "categories.csv")
        self.products_csv = os.path.join(self.data_dir, "products.csv")
        self.customers_csv = os.path.join(self.data_dir, "customers.csv")
        self.orders_csv = os.path.join(self.data_dir, "orders.csv")
        self.order_details_csv = os.path.join(self.data_dir, "order_details.csv")

    def load_csv_data(self, file_path: str) -> Optional[pd.DataFrame]:
        """Load data from a CSV file, None when the file is missing"""
        try:
            return pd.read_csv(file_path)
        except FileNotFoundError:
            logger.error(f"CSV file not found: {file_path}")
            return None
        except pd.errors.EmptyDataError:
            logger.warning(f"CSV file is empty: {file_path}")
            return pd.DataFrame()

    def _existing_keys(self, session: Session, key_column) -> Set[int]:
        return set(session.scalars(select(key_column)).all())

    def _insert_rows(
        self,
        session: Session,
        frame: pd.DataFrame,
        key: str,
        key_column,
        build: Callable[[Dict], object],
        label: str,
    ) -> int:
        existing = self._existing_keys(session, key_column)
        inserted = 0
        for row in frame.to_dict(orient="records"):
            if int(row[key]) in existing:
                continue
            session.add(build(row))
            inserted += 1

        # Flush so constraint violations surface before the next table
        session.flush()
        logger.info(f"Inserted {inserted} {label}")
        return inserted

    def insert_categories(self, session: Session, categories_df: pd.DataFrame) -> int:
        """Insert category data into the database"""
        return self._insert_rows(
            session,
            categories_df,
            "category_id",
            Category.category_id,
            lambda row: Category(category_id=int(row["category_id"]), name=row["name"]),
            "categories",
        )

    def insert_products(self, session: Session, products_df: pd.DataFrame) -> int:
        """Insert product data into the database"""

        def build(row):
            category_id = optional(row.get("category_id"))
            stock = optional(row.get("stock_quantity"))
            return Product(
                product_id=int(row["product_id"]),
                category_id=int(category_id) if category_id is not None else None,
                name=row["name"],
                description=optional(row.get("description")),
                price=Decimal(str(row["price"])),
                stock_quantity=int(stock) if stock is not None else 0,
            )

        return self._insert_rows(
            session, products_df, "product_id", Product.product_id, build, "products"
        )

    def insert_customers(self, session: Session, customers_df: pd.DataFrame) -> int:
        """Insert customer data into the database"""
        return self._insert_rows(
            session,
            customers_df,
            "customer_id",
            Customer.customer_id,
            lambda row: Customer(
                customer_id=int(row["customer_id"]),
                first_name=row["first_name"],
                last_name=row["last_name"],
                email=row["email"],
                password=row["password"],
            ),
            "customers",
        )

    def insert_orders(self, session: Session, orders_df: pd.DataFrame) -> int:
        """Insert order data into the database"""

        def build(row):
            order = Order(
                order_id=int(row["order_id"]),
                customer_id=int(row["customer_id"]),
                total_amount=Decimal(str(row["total_amount"])),
            )
            # A missing date falls back to the column default
            order_date = optional(row.get("order_date"))
            if order_date is not None:
                order.order_date = datetime.fromisoformat(str(order_date))
            return order

        return self._insert_rows(
            session, orders_df, "order_id", Order.order_id, build, "orders"
        )

    def insert_order_details(
        self, session: Session, order_details_df: pd.DataFrame
    ) -> int:
        """Insert order detail lines into the database"""
        return self._insert_rows(
            session,
            order_details_df,
            "order_detail_id",
            OrderDetail.order_detail_id,
            lambda row: OrderDetail(
                order_detail_id=int(row["order_detail_id"]),
                order_id=int(row["order_id"]),
                product_id=int(row["product_id"]),
                quantity=int(row["quantity"]),
                unit_price=Decimal(str(row["unit_price"])),
            ),
            "order details",
        )

    def __call__(self) -> bool:
        """Main function to initalize"""
        engine = create_db_engine(self.db_url)

        # Wait for the database to be available
        if not wait_for_database(engine, max_retries=DB_MAX_RETRIES, delay=DB_RETRY_DELAY):
            return False

        # Set up database
        create_schema(engine=engine)

        # Load data from CSV files
        categories_df = self.load_csv_data(self.categories_csv)
        products_df = self.load_csv_data(self.products_csv)
        customers_df = self.load_csv_data(self.customers_csv)
        orders_df = self.load_csv_data(self.orders_csv)
        order_details_df = self.load_csv_data(self.order_details_csv)

        frames = [categories_df, products_df, customers_df, orders_df, order_details_df]
        if any(frame is None for frame in frames):
            logger.error("One or more CSV files could not be loaded. Exiting.")
            return False

        with Session(engine) as session:
            try:
                self.insert_categories(session, categories_df)
                self.insert_products(session, products_df)
                self.insert_customers(session, customers_df)
                self.insert_orders(session, orders_df)
                self.insert_order_details(session, order_details_df)
                session.commit()
                logger.info("Initialization completed successfully")
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Database error: {e}")
                raise

        return True


if __name__ == "__main__":
    data_initializer = DataInitializer(db_url=DB_URL, data_dir=DATA_DIR)
    data_initializer()
