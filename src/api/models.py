"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, Field

from src.domain.account import Account


class TokenRequest(BaseModel):
    """Request model for API token creation."""

    # Blank values are rejected by the domain with a 400, not by validation
    email: str = Field(default="", description="Account email")
    password: str = Field(default="", description="Account password")


class TokenResponse(BaseModel):
    """Response model carrying an API or switch-site token."""

    token: str


class AccountResponse(BaseModel):
    """Public projection of an account."""

    email: str
    name: str
    locale: str
    confirmed: bool

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            email=account.email,
            name=account.name,
            locale=account.locale,
            confirmed=account.is_confirmed,
        )


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
