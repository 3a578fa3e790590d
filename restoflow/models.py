"""SQLAlchemy models for owners, staff, subscriptions, menu plans, tables and purchase orders."""

from datetime import date, datetime, time, timedelta

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .roles import Role


class Base(DeclarativeBase):
    pass


# --- Accounts ---
class User(Base):
    """Restaurant owner account (the ``web`` guard)."""

    __tablename__ = "users"
    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=True)
    middle_name: Mapped[str] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str] = mapped_column(String(255), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=True)
    age: Mapped[int] = mapped_column(Integer, nullable=True)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=True)
    gender: Mapped[str] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    phonenumber: Mapped[str] = mapped_column(String(20), unique=True, nullable=True)
    address: Mapped[str] = mapped_column(String(255), unique=True, nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    role_id: Mapped[int] = mapped_column(Integer, default=int(Role.RESTAURANT_OWNER))
    status: Mapped[str] = mapped_column(String(20), default="active")
    email_verified_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    restaurant: Mapped["RestaurantData"] = relationship(back_populates="owner", uselist=False)

    @property
    def role(self) -> Role | None:
        return Role.from_id(self.role_id)


class RestaurantData(Base):
    __tablename__ = "restaurant_data"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    restaurant_name: Mapped[str] = mapped_column(String(255))
    address: Mapped[str] = mapped_column(String(255))
    postal_code: Mapped[str] = mapped_column(String(20), nullable=True)
    contact_number: Mapped[str] = mapped_column(String(20), unique=True)

    owner: Mapped[User] = relationship(back_populates="restaurant")


class Employee(Base):
    """Staff account (the ``employee`` guard); ``user_id`` is the owning restaurant owner."""

    __tablename__ = "employees"
    employee_id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    first_name: Mapped[str] = mapped_column(String(255))
    middle_name: Mapped[str] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), unique=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=True)
    gender: Mapped[str] = mapped_column(String(20), nullable=True)
    role_id: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), default="active")

    @property
    def role(self) -> Role | None:
        return Role.from_id(self.role_id)


class Administrator(Base):
    __tablename__ = "administrators"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), unique=True)
    password_hash: Mapped[str] = mapped_column(String(255))


class UserSubscription(Base):
    __tablename__ = "user_subscriptions"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    plan_name: Mapped[str] = mapped_column(String(120))
    subscription_start_date: Mapped[date] = mapped_column(Date)
    subscription_end_date: Mapped[datetime] = mapped_column(DateTime)
    remaining_days: Mapped[int] = mapped_column(Integer, default=0)
    is_trial: Mapped[bool] = mapped_column(Boolean, default=False)
    subscription_status: Mapped[str] = mapped_column(String(20), default="active")  # active / archive

    __table_args__ = (Index("ix_user_subscriptions_user_status", "user_id", "subscription_status"),)


# --- Menu planning ---
class MenuPlan(Base):
    __tablename__ = "menu_plans"
    menu_plan_id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurant_data.id"))
    plan_name: Mapped[str] = mapped_column(String(255))
    plan_type: Mapped[str] = mapped_column(String(10))  # daily / weekly
    start_date: Mapped[date] = mapped_column(Date, nullable=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (Index("ix_menu_plans_active_start", "is_active", "start_date"),)


# --- Tables & reservations ---
class RestaurantTable(Base):
    __tablename__ = "tables"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    table_number: Mapped[str] = mapped_column(String(20), unique=True)
    table_name: Mapped[str] = mapped_column(String(120))
    seats: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), default="available")  # available / occupied / reserved / maintenance


RESERVATION_ACTIVE_STATUSES = ("pending", "confirmed", "seated")
DEFAULT_RESERVATION_MINUTES = 120


class TableReservation(Base):
    __tablename__ = "table_reservations"
    id: Mapped[int] = mapped_column(primary_key=True)
    table_id: Mapped[int] = mapped_column(ForeignKey("tables.id"))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    customer_name: Mapped[str] = mapped_column(String(255))
    customer_phone: Mapped[str] = mapped_column(String(40))
    customer_email: Mapped[str] = mapped_column(String(255), nullable=True)
    party_size: Mapped[int] = mapped_column(Integer)
    reservation_date: Mapped[date] = mapped_column(Date)
    reservation_time: Mapped[time] = mapped_column(Time)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=True, default=DEFAULT_RESERVATION_MINUTES)
    status: Mapped[str] = mapped_column(String(20), default="pending")

    table: Mapped[RestaurantTable] = relationship()

    __table_args__ = (Index("ix_table_reservations_date_status", "reservation_date", "status"),)

    @property
    def ends_at(self) -> datetime:
        start = datetime.combine(self.reservation_date, self.reservation_time)
        return start + timedelta(minutes=self.duration_minutes or DEFAULT_RESERVATION_MINUTES)


# --- Purchasing ---
class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"
    purchase_order_id: Mapped[int] = mapped_column(primary_key=True)
    po_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=True)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurant_data.id"))
    supplier_name: Mapped[str] = mapped_column(String(255), nullable=True)
    supplier_email: Mapped[str] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(30), default="draft")
    supplier_response: Mapped[str] = mapped_column(String(20), nullable=True)
    supplier_responded_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
