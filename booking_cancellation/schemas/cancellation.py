from pydantic import BaseModel
from typing import Optional

class CancellationOut(BaseModel):
    success: bool
    refundEligible: Optional[bool] = None
    refundId: Optional[str] = None
    customerEmailSent: Optional[bool] = None
    partnerEmailSent: Optional[bool] = None
    emailError: Optional[str] = None
    error: Optional[str] = None

class RefundPreviewOut(BaseModel):
    eligible: bool
    policy: str
    referenceDate: str
    hoursRemaining: float
    daysRemaining: float

class PartnerCancellationIn(BaseModel):
    reason: str

class PartnerCancellationOut(BaseModel):
    success: bool
    refundId: Optional[str] = None
    penaltyApplied: Optional[float] = None
    customerEmailSent: Optional[bool] = None
    partnerEmailSent: Optional[bool] = None
    error: Optional[str] = None
