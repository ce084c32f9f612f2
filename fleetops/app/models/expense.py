"""
Expense database model.

Expenses are created directly (maintenance add-expense) or derived from a
fuel log. They are never deleted automatically.
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from fleetops.app.db.session import Base
from fleetops.app.models.expense_enums import ExpenseCategory


class Expense(Base):
    """Expense model."""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    category = Column(Enum(ExpenseCategory), nullable=False, index=True)
    description = Column(String(500), nullable=False)
    amount = Column(Float, nullable=False)

    # Linkage (conventionally one primary link)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=True, index=True)
    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=True, index=True)
    maintenance_log_id = Column(Integer, ForeignKey('maintenance_logs.id'), nullable=True, index=True)
    fuel_log_id = Column(Integer, ForeignKey('fuel_logs.id'), unique=True, nullable=True)

    receipt_url = Column(String(1000), nullable=True)
    incurred_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Expense(id={self.id}, category='{self.category.value}', amount={self.amount})>"
