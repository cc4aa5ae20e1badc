"""Request and response schemas for Billing feature"""

from pydantic import BaseModel, EmailStr, Field, ConfigDict


class CreateCheckoutSessionRequest(BaseModel):
    """Request model for starting a plan checkout"""
    model_config = ConfigDict(populate_by_name=True)

    plan_id: str = Field(..., alias="planId")  # "3day", "5day" or "7day"
    is_annual: bool = Field(False, alias="isAnnual")
    user_email: EmailStr | None = Field(None, alias="userEmail")


class CreateCheckoutSessionResponse(BaseModel):
    """Response model for checkout session creation; the client redirects to url"""
    session_id: str
    url: str | None = None


class CheckoutStatusResponse(BaseModel):
    """Outcome of a checkout the user was redirected back from"""
    session_id: str
    status: str | None = None
    payment_status: str | None = None
    plan_id: str | None = None
    completed: bool
