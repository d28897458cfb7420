"""SQLAlchemy ORM models for categories, products, customers, orders, and order details."""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Category(Base):
    """
    Category model grouping products of the catalog.
    """

    __tablename__ = "categories"
    __table_args__ = (
        CheckConstraint("length(name) > 3", name="ck_categories_name_length"),
    )

    category_id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False, unique=True)

    # Relationship with products
    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.category_id}, name='{self.name}')>"


class Product(Base):
    """
    Product model representing items available for purchase.
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("length(name) > 3", name="ck_products_name_length"),
        CheckConstraint("price > 0", name="ck_products_price_positive"),
        CheckConstraint(
            "stock_quantity >= 0", name="ck_products_stock_non_negative"
        ),
        Index("ix_products_category_id", "category_id"),
        Index("ix_products_stock_quantity", "stock_quantity"),
    )

    product_id = Column(Integer, primary_key=True)
    category_id = Column(
        Integer, ForeignKey("categories.category_id"), nullable=True
    )
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0, server_default="0")

    # Relationship with category and order details
    category = relationship("Category", back_populates="products")
    order_details = relationship("OrderDetail", back_populates="product")

    def __repr__(self):
        return (
            f"<Product(id={self.product_id}, name='{self.name}', price='{self.price}')>"
        )


class Customer(Base):
    """
    Customer model representing customer information in the business system.
    """

    __tablename__ = "customers"
    __table_args__ = (
        CheckConstraint("length(first_name) > 1", name="ck_customers_first_name_length"),
        CheckConstraint("length(last_name) > 1", name="ck_customers_last_name_length"),
        CheckConstraint("length(password) >= 8", name="ck_customers_password_length"),
    )

    customer_id = Column(Integer, primary_key=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), nullable=False, unique=True)
    password = Column(String(255), nullable=False)

    # Relationship with orders
    orders = relationship("Order", back_populates="customer")

    def __repr__(self):
        return (
            f"<Customer(id={self.customer_id}, "
            f"name='{self.first_name} {self.last_name}')>"
        )


class Order(Base):
    """
    Order model representing customer purchases.
    """

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
        Index("ix_orders_order_date", "order_date"),
        # Covers the per-customer spend aggregations
        Index(
            "ix_orders_customer_date_amount",
            "customer_id",
            "order_date",
            "total_amount",
        ),
    )

    order_id = Column(Integer, primary_key=True)
    customer_id = Column(
        Integer, ForeignKey("customers.customer_id"), nullable=False
    )
    order_date = Column(
        DateTime, nullable=False, default=datetime.now, server_default=func.now()
    )
    total_amount = Column(Numeric(10, 2), nullable=False)

    # Relationship with customer and details
    customer = relationship("Customer", back_populates="orders")
    details = relationship("OrderDetail", back_populates="order")

    def __repr__(self):
        return f"<Order(id={self.order_id}, customer_id={self.customer_id}, total=${self.total_amount})>"


class OrderDetail(Base):
    """
    OrderDetail model representing individual lines within an order.
    """

    __tablename__ = "order_details"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_details_quantity_positive"),
        # Covers the top-seller join
        Index(
            "ix_order_details_order_product_quantity",
            "order_id",
            "product_id",
            "quantity",
        ),
        Index("ix_order_details_product_id", "product_id"),
    )

    order_detail_id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.order_id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)

    # Relationship with order and product
    order = relationship("Order", back_populates="details")
    product = relationship("Product", back_populates="order_details")

    def __repr__(self):
        return f"<OrderDetail(order_id={self.order_id}, product_id={self.product_id}, quantity={self.quantity})>"
