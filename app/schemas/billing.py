from pydantic import BaseModel
from typing import Optional, Any, Dict, List


# Request fields are optional so missing values surface as 400s from the billing service.

class BillingInitializeRequest(BaseModel):
    planId: Optional[str] = None
    orgId: Optional[str] = None


class BillingInitializeResponse(BaseModel):
    success: bool
    authorizationUrl: str
    accessCode: Optional[str] = None
    reference: str


class BillingVerifyRequest(BaseModel):
    reference: Optional[str] = None
    orgId: Optional[str] = None


class BillingVerifyResponse(BaseModel):
    success: bool
    plan: str
    planName: str
    status: str
    message: str


class BillingManageRequest(BaseModel):
    action: Optional[str] = None
    orgId: Optional[str] = None


class BillingManageResponse(BaseModel):
    success: bool
    message: str


class PlanOut(BaseModel):
    id: str
    name: str
    price: int
    currency: str
    interval: str
    description: str
    limits: Dict[str, Any]
    features: Dict[str, Any]
    highlighted: bool = False
    priceLabel: str


class PlansResponse(BaseModel):
    plans: List[PlanOut]
