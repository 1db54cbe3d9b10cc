"""Subscription repository - Database operations for plans and payment transactions"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...models_billing import PaymentTransaction, Subscription


class SubscriptionRepository:
    """Repository for subscription database operations"""

    @staticmethod
    def get_by_user_id(db: Session, user_id: str) -> Optional[Subscription]:
        return db.query(Subscription).filter(Subscription.user_id == user_id).first()

    @staticmethod
    def get_by_id(db: Session, subscription_id: str) -> Optional[Subscription]:
        return db.query(Subscription).filter(Subscription.id == subscription_id).first()

    @staticmethod
    def create_subscription(db: Session, user_id: str, **subscription_data) -> Subscription:
        subscription = Subscription(user_id=user_id, **subscription_data)
        db.add(subscription)
        db.commit()
        db.refresh(subscription)
        return subscription

    @staticmethod
    def activate_paid_plan(
        db: Session,
        subscription: Subscription,
        payment_intent_id: str,
        amount: float,
        duration_days: int,
    ) -> Subscription:
        """Approved payment: paid plan, active, expiring duration_days from now"""
        now = datetime.utcnow()
        subscription.plan_type = "paid"
        subscription.status = "active"
        subscription.payment_date = now
        subscription.payment_amount = amount
        subscription.payment_intent_id = payment_intent_id
        subscription.expires_at = now + timedelta(days=duration_days)
        db.commit()
        db.refresh(subscription)
        return subscription

    @staticmethod
    def set_status(db: Session, subscription: Subscription, status: str) -> Subscription:
        subscription.status = status
        db.commit()
        db.refresh(subscription)
        return subscription

    @staticmethod
    def create_transaction(
        db: Session,
        subscription: Subscription,
        amount: float,
        payment_intent_id: str,
        status: str,
        metadata: Optional[dict] = None,
    ) -> PaymentTransaction:
        transaction = PaymentTransaction(
            user_id=subscription.user_id,
            subscription_id=subscription.id,
            amount=amount,
            payment_method="mercadopago",
            payment_intent_id=payment_intent_id,
            status=status,
            transaction_metadata=metadata or {},
        )
        db.add(transaction)
        db.commit()
        db.refresh(transaction)
        return transaction

    @staticmethod
    def mark_transactions_status(db: Session, payment_intent_id: str, status: str) -> int:
        """Update every transaction recorded for a provider payment id"""
        transactions = (
            db.query(PaymentTransaction).filter(PaymentTransaction.payment_intent_id == payment_intent_id).all()
        )
        for transaction in transactions:
            transaction.status = status
        db.commit()
        return len(transactions)
