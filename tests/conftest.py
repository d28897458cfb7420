"""
Shared pytest fixtures
"""
from datetime import datetime
from decimal import Decimal
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from shop_utilities.models import Category, Customer, Order, OrderDetail, Product
from shop_utilities.tools import create_db_engine, create_schema, create_summary_schema


@pytest.fixture
def engine():
    """In-memory SQLite engine with the core and summary tables"""
    engine = create_db_engine("sqlite://")
    create_schema(engine)
    create_summary_schema(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def test_db(engine) -> Generator[Session, None, None]:
    """Session bound to the in-memory database"""
    session = Session(bind=engine)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def order_factory(test_db):
    """Create an order whose total is the sum of its (product, quantity) lines"""

    def make_order(customer, order_date, lines, total_amount=None):
        details = [
            OrderDetail(product_id=product.product_id, quantity=quantity, unit_price=product.price)
            for product, quantity in lines
        ]
        if total_amount is None:
            total_amount = sum(
                (Decimal(str(product.price)) * quantity for product, quantity in lines),
                Decimal("0.00"),
            )
        order = Order(
            customer_id=customer.customer_id,
            order_date=order_date,
            total_amount=total_amount,
            details=details,
        )
        test_db.add(order)
        test_db.flush()
        return order

    return make_order


@pytest.fixture
def populated_db(test_db, order_factory):
    """
    Database with sample data.

    Categories: Books (1 product), Electronics (2 products), Garden (none),
    plus one uncategorized product. Orders fall in February and March 2024.
    """
    session = test_db

    electronics = Category(name="Electronics")
    books = Category(name="Books")
    garden = Category(name="Garden")
    session.add_all([electronics, books, garden])
    session.flush()

    product_a = Product(
        category_id=electronics.category_id,
        name="Product A",
        price=Decimal("100.00"),
        stock_quantity=5,
    )
    product_b = Product(
        category_id=electronics.category_id,
        name="Product B",
        price=Decimal("50.00"),
        stock_quantity=15,
    )
    novel = Product(
        category_id=books.category_id,
        name="Novel",
        description="Paperback",
        price=Decimal("20.00"),
        stock_quantity=0,
    )
    widget = Product(
        category_id=None,
        name="Loose Widget",
        price=Decimal("10.00"),
        stock_quantity=8,
    )
    session.add_all([product_a, product_b, novel, widget])
    session.flush()

    alice = Customer(first_name="Alice", last_name="Smith", email="alice@example.com", password="secret123")
    bob = Customer(first_name="Bob", last_name="Jones", email="bob@example.com", password="secret123")
    carol = Customer(first_name="Carol", last_name="White", email="carol@example.com", password="secret123")
    session.add_all([alice, bob, carol])
    session.flush()

    # 400.00
    order_factory(alice, datetime(2024, 3, 10, 12, 0), [(product_a, 3), (product_b, 2)])
    # 20.00
    order_factory(bob, datetime(2024, 3, 15, 9, 30), [(novel, 1)])
    # 20.00, exactly at midnight after 2024-03-15
    order_factory(alice, datetime(2024, 3, 16, 0, 0, 0), [(widget, 2)])
    # 100.00
    order_factory(carol, datetime(2024, 2, 20, 17, 45), [(product_a, 1)])

    session.commit()
    return session
