"""
Subscription Billing Models
Per-user plan state and the Mercado Pago payments that activate it
"""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_uuid


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), unique=True, index=True, nullable=False)
    plan_type = Column(String(20), default="trial", nullable=False)  # trial, paid, master
    status = Column(
        String(20), default="active", nullable=False
    )  # active, expired, cancelled, pending_payment
    trial_start_date = Column(DateTime, nullable=True)
    trial_end_date = Column(DateTime, nullable=True)
    payment_date = Column(DateTime, nullable=True)
    payment_amount = Column(Float, nullable=True)
    payment_intent_id = Column(String(255), nullable=True)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    transactions = relationship(
        "PaymentTransaction", back_populates="subscription", cascade="all, delete-orphan"
    )


class PaymentTransaction(Base):
    """Track subscription payment attempts"""

    __tablename__ = "payment_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), nullable=False, index=True)
    subscription_id = Column(String(36), ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Float, nullable=False)
    payment_method = Column(String(50), default="mercadopago")
    payment_intent_id = Column(String(255), nullable=True, index=True)
    status = Column(String(50), default="pending")
    transaction_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    subscription = relationship("Subscription", back_populates="transactions")
