"""
Tests for the schema definition - constraints, defaults, indexes
"""
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from report_processor.report_processor import ReportProcessor
from shop_utilities.models import Category, Customer, Order, OrderDetail, Product
from shop_utilities.tools import create_db_engine, create_schema


def make_customer(**overrides):
    values = {
        "first_name": "Alice",
        "last_name": "Smith",
        "email": "alice@example.com",
        "password": "secret123",
    }
    values.update(overrides)
    return Customer(**values)


@pytest.mark.unit
class TestSchema:
    """Schema creation"""

    def test_create_schema_builds_exactly_five_tables(self):
        engine = create_db_engine("sqlite://")
        create_schema(engine)

        tables = set(inspect(engine).get_table_names())
        assert tables == {"categories", "products", "customers", "orders", "order_details"}

    def test_create_schema_is_idempotent(self, populated_db):
        engine = populated_db.get_bind()
        create_schema(engine)

        assert populated_db.query(Order).count() == 4

    def test_indexes_are_created(self):
        engine = create_db_engine("sqlite://")
        create_schema(engine)

        order_indexes = {index["name"] for index in inspect(engine).get_indexes("orders")}
        assert "ix_orders_order_date" in order_indexes
        assert "ix_orders_customer_date_amount" in order_indexes


@pytest.mark.unit
class TestConstraints:
    """Constraint violations surface as IntegrityError"""

    def test_duplicate_category_name(self, test_db):
        test_db.add(Category(name="Electronics"))
        test_db.flush()
        test_db.add(Category(name="Electronics"))

        with pytest.raises(IntegrityError):
            test_db.flush()

    def test_short_category_name(self, test_db):
        test_db.add(Category(name="Toy"))

        with pytest.raises(IntegrityError):
            test_db.flush()

    def test_duplicate_customer_email(self, test_db):
        test_db.add(make_customer())
        test_db.flush()
        test_db.add(make_customer(first_name="Alicia"))

        with pytest.raises(IntegrityError):
            test_db.flush()

    def test_short_password(self, test_db):
        test_db.add(make_customer(password="short"))

        with pytest.raises(IntegrityError):
            test_db.flush()

    def test_short_last_name(self, test_db):
        test_db.add(make_customer(last_name="X"))

        with pytest.raises(IntegrityError):
            test_db.flush()

    def test_missing_password(self, test_db):
        test_db.add(make_customer(password=None))

        with pytest.raises(IntegrityError):
            test_db.flush()

    @pytest.mark.parametrize("price", [Decimal("0.00"), Decimal("-5.00")])
    def test_non_positive_price(self, test_db, price):
        test_db.add(Product(name="Gadget", price=price))

        with pytest.raises(IntegrityError):
            test_db.flush()

    def test_negative_stock(self, test_db):
        test_db.add(Product(name="Gadget", price=Decimal("1.00"), stock_quantity=-1))

        with pytest.raises(IntegrityError):
            test_db.flush()

    def test_short_product_name(self, test_db):
        test_db.add(Product(name="Pen", price=Decimal("1.00")))

        with pytest.raises(IntegrityError):
            test_db.flush()

    def test_order_for_unknown_customer(self, test_db):
        test_db.add(Order(customer_id=999, order_date=datetime(2024, 3, 1), total_amount=Decimal("10.00")))

        with pytest.raises(IntegrityError):
            test_db.flush()

    def test_detail_for_unknown_product(self, populated_db):
        order = populated_db.query(Order).first()
        populated_db.add(
            OrderDetail(order_id=order.order_id, product_id=999, quantity=1, unit_price=Decimal("1.00"))
        )

        with pytest.raises(IntegrityError):
            populated_db.flush()

    def test_product_with_unknown_category(self, test_db):
        test_db.add(Product(category_id=42, name="Gadget", price=Decimal("1.00")))

        with pytest.raises(IntegrityError):
            test_db.flush()

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_non_positive_quantity(self, populated_db, quantity):
        order = populated_db.query(Order).first()
        product = populated_db.query(Product).first()
        populated_db.add(
            OrderDetail(
                order_id=order.order_id,
                product_id=product.product_id,
                quantity=quantity,
                unit_price=product.price,
            )
        )

        with pytest.raises(IntegrityError):
            populated_db.flush()

    def test_negative_order_total(self, test_db):
        customer = make_customer()
        test_db.add(customer)
        test_db.flush()
        test_db.add(Order(customer_id=customer.customer_id, total_amount=Decimal("-1.00")))

        with pytest.raises(IntegrityError):
            test_db.flush()


@pytest.mark.unit
class TestDefaults:
    """Column defaults"""

    def test_order_date_defaults_to_creation_time(self, test_db):
        customer = make_customer()
        test_db.add(customer)
        test_db.flush()

        order = Order(customer_id=customer.customer_id, total_amount=Decimal("0.00"))
        test_db.add(order)
        test_db.commit()
        test_db.refresh(order)

        assert isinstance(order.order_date, datetime)

    def test_default_order_date_falls_in_its_local_day(self, test_db):
        customer = make_customer()
        test_db.add(customer)
        test_db.flush()

        before = datetime.now()
        order = Order(customer_id=customer.customer_id, total_amount=Decimal("12.34"))
        test_db.add(order)
        test_db.commit()
        test_db.refresh(order)

        assert before <= order.order_date <= datetime.now()

        revenue = ReportProcessor(test_db).daily_revenue(order.order_date.date())
        assert revenue[0]["total_revenue"] == Decimal("12.34")

    def test_stock_quantity_defaults_to_zero(self, test_db):
        product = Product(name="Gadget", price=Decimal("9.99"))
        test_db.add(product)
        test_db.commit()
        test_db.refresh(product)

        assert product.stock_quantity == 0
        assert product.category is None

    def test_relationships(self, populated_db):
        category = populated_db.query(Category).filter_by(name="Electronics").one()
        names = sorted(product.name for product in category.products)

        assert names == ["Product A", "Product B"]

        alice = populated_db.query(Customer).filter_by(email="alice@example.com").one()
        assert len(alice.orders) == 2
        assert sum(len(order.details) for order in alice.orders) == 3
