"""Payment domain schemas - Pydantic models for validation"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_cpf, validate_email


@dataclass
class WebhookResult:
    """Status code and JSON body a webhook handler answers with"""

    status_code: int
    body: dict = field(default_factory=dict)


class PayerInfo(BaseModel):
    """Payer fields required by Mercado Pago for PIX"""

    email: str
    firstName: str
    lastName: str
    cpf: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_payer_email(cls, v):
        return validate_email(v)

    @field_validator("firstName", "lastName")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Payer name is required")
        return v.strip()

    @field_validator("cpf")
    @classmethod
    def validate_payer_cpf(cls, v):
        return validate_cpf(v)


class OrderPaymentRequest(BaseModel):
    """Schema for starting the PIX payment of a pending order"""

    payer: PayerInfo


class PixPaymentResponse(BaseModel):
    paymentId: str
    status: Optional[str] = None
    orderId: Optional[str] = None
    amount: float
    qrCode: Optional[str] = None
    qrCodeBase64: Optional[str] = None
    ticketUrl: Optional[str] = None


class OrderStatusResponse(BaseModel):
    """Public view of an order for payment status polling"""

    orderId: str
    status: str
    paid: bool
    amount: float
    paymentId: Optional[str] = None


class OrderResponse(BaseModel):
    """Schema for order response"""

    id: str
    eventId: str
    clientEmail: str
    selectedPhotos: list[str]
    totalAmount: float
    status: str
    paymentIntentId: Optional[str] = None
    externalReference: Optional[str] = None
    metadata: Optional[dict] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WebhookLogResponse(BaseModel):
    id: str
    eventType: str
    payload: Any
    response: Optional[Any] = None
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
