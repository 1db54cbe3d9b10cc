"""Subscription domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_cpf


class SubscriptionResponse(BaseModel):
    """Schema for subscription response with computed access state"""

    id: str
    planType: str
    status: str
    trialStartDate: Optional[datetime] = None
    trialEndDate: Optional[datetime] = None
    paymentDate: Optional[datetime] = None
    paymentAmount: Optional[float] = None
    expiresAt: Optional[datetime] = None
    hasAccess: bool
    isTrialExpired: bool
    daysRemaining: int

    class Config:
        from_attributes = True


class SubscriptionPaymentRequest(BaseModel):
    """Schema for starting the monthly subscription PIX payment"""

    payerName: Optional[str] = None
    cpf: Optional[str] = None

    @field_validator("cpf")
    @classmethod
    def validate_payer_cpf(cls, v):
        return validate_cpf(v)
