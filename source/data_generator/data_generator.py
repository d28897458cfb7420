"""Script to generate a synthetic e-commerce dataset and write it to the order store."""

import random
from decimal import Decimal
from typing import List, Optional, Tuple

from faker import Faker
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shop_utilities.config import (
    DB_URL,
    DB_MAX_RETRIES,
    DB_RETRY_DELAY,
    GENERATOR_BATCH_SIZE,
    GENERATOR_CATEGORIES,
    GENERATOR_CUSTOMERS,
    GENERATOR_MAX_LINES,
    GENERATOR_ORDERS,
    GENERATOR_PRODUCTS,
    GENERATOR_SEED,
)
from shop_utilities.logger import Logger
from shop_utilities.models import Category, Customer, Order, OrderDetail, Product
from shop_utilities.tools import create_db_engine, create_schema, wait_for_database

# Set up logger
logger = Logger.get_logger(__name__)

# Share of products left without a category
UNCATEGORIZED_RATIO = 0.02


class DataGenerator:
    """
    Class to generate random categories, products, customers and orders.

    Rows are written in batches of `batch_size`; each order gets between one
    and `max_lines` detail lines and its total equals the sum of its lines.
    """

    def __init__(
        self,
        db_url: str,
        num_categories: int = GENERATOR_CATEGORIES,
        num_products: int = GENERATOR_PRODUCTS,
        num_customers: int = GENERATOR_CUSTOMERS,
        num_orders: int = GENERATOR_ORDERS,
        max_lines: int = GENERATOR_MAX_LINES,
        batch_size: int = GENERATOR_BATCH_SIZE,
        seed: Optional[int] = None,
    ):
        self.db_url = db_url
        self.num_categories = num_categories
        self.num_products = num_products
        self.num_customers = num_customers
        self.num_orders = num_orders
        self.max_lines = max_lines
        self.batch_size = batch_size

        self.random = random.Random(seed)
        self.faker = Faker()
        if seed is not None:
            self.faker.seed_instance(seed)

    def _price(self) -> Decimal:
        return Decimal(str(round(self.random.uniform(1, 500), 2)))

    def generate_categories(self, session: Session) -> List[int]:
        """Generate categories, skipping names already in the database"""
        taken = set(session.scalars(select(Category.name)).all())
        categories = []
        while len(categories) < self.num_categories:
            name = f"{self.faker.word().title()} Goods"
            if name in taken:
                name = f"{name} {len(taken) + 1}"
            if name in taken:
                continue
            taken.add(name)
            categories.append(Category(name=name))

        session.add_all(categories)
        session.commit()
        logger.info(f"Generated {len(categories)} categories")
        return [category.category_id for category in categories]

    def generate_products(
        self, session: Session, category_ids: List[int]
    ) -> List[Tuple[int, Decimal]]:
        """Generate products, a small share of them uncategorized"""
        products = []
        catalog = []
        for index in range(self.num_products):
            category_id = None
            if category_ids and self.random.random() >= UNCATEGORIZED_RATIO:
                category_id = self.random.choice(category_ids)

            products.append(
                Product(
                    category_id=category_id,
                    name=f"{self.faker.catch_phrase()[:90]} #{index + 1}",
                    description=self.faker.sentence(nb_words=12),
                    price=self._price(),
                    stock_quantity=self.random.randint(0, 500),
                )
            )

            if len(products) >= self.batch_size:
                catalog.extend(self._flush_products(session, products))
                products = []

        catalog.extend(self._flush_products(session, products))
        logger.info(f"Generated {len(catalog)} products")
        return catalog

    def _flush_products(self, session: Session, products: List[Product]):
        if not products:
            return []
        session.add_all(products)
        session.commit()
        return [(product.product_id, product.price) for product in products]

    def generate_customers(self, session: Session) -> List[int]:
        """Generate customers with unique emails"""
        # Email suffixes continue after the customers of earlier runs
        offset = session.query(func.max(Customer.customer_id)).scalar() or 0
        customer_ids = []
        customers = []
        for index in range(self.num_customers):
            customers.append(
                Customer(
                    first_name=self.faker.first_name(),
                    last_name=self.faker.last_name(),
                    email=f"{self.faker.user_name()}.{offset + index + 1}@{self.faker.free_email_domain()}",
                    password=self.faker.password(length=12),
                )
            )

            if len(customers) >= self.batch_size:
                customer_ids.extend(self._flush_customers(session, customers))
                customers = []

        customer_ids.extend(self._flush_customers(session, customers))
        logger.info(f"Generated {len(customer_ids)} customers")
        return customer_ids

    def _flush_customers(self, session: Session, customers: List[Customer]):
        if not customers:
            return []
        session.add_all(customers)
        session.commit()
        return [customer.customer_id for customer in customers]

    def generate_orders(
        self,
        session: Session,
        customer_ids: List[int],
        catalog: List[Tuple[int, Decimal]],
    ) -> int:
        """Generate orders over the last year together with their detail lines"""
        if not customer_ids or not catalog:
            logger.info("No customers or products found, skipping orders")
            return 0

        generated = 0
        pending = 0
        for _ in range(self.num_orders):
            lines = self.random.sample(
                catalog, min(self.random.randint(1, self.max_lines), len(catalog))
            )
            details = []
            total_amount = Decimal("0.00")
            for product_id, price in lines:
                quantity = self.random.randint(1, 5)
                total_amount += price * quantity
                details.append(
                    OrderDetail(product_id=product_id, quantity=quantity, unit_price=price)
                )

            order = Order(
                customer_id=self.random.choice(customer_ids),
                order_date=self.faker.date_time_between(start_date="-1y", end_date="now"),
                total_amount=total_amount,
                details=details,
            )
            session.add(order)
            generated += 1
            pending += 1

            if pending >= self.batch_size:
                session.commit()
                session.expunge_all()
                logger.info(f"Generated {generated}/{self.num_orders} orders")
                pending = 0

        session.commit()
        logger.info(f"Generated {generated} orders with details")
        return generated

    def __call__(self) -> bool:
        """Main function to generate"""
        engine = create_db_engine(self.db_url)

        # Wait for the database to be available
        if not wait_for_database(engine, max_retries=DB_MAX_RETRIES, delay=DB_RETRY_DELAY):
            return False

        # Set up database
        create_schema(engine=engine)

        with Session(engine, expire_on_commit=False) as session:
            try:
                category_ids = self.generate_categories(session)
                catalog = self.generate_products(session, category_ids)
                customer_ids = self.generate_customers(session)
                self.generate_orders(session, customer_ids, catalog)
                logger.info("Generation completed successfully")
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Database error: {e}")
                raise

        return True


if __name__ == "__main__":
    data_generator = DataGenerator(
        db_url=DB_URL,
        seed=int(GENERATOR_SEED) if GENERATOR_SEED else None,
    )
    data_generator()
