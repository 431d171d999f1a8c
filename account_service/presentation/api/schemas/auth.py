"""Pydantic schemas for the authentication endpoints.

Fields are optional so that missing values reach the account service. Bodies
that fail to parse are answered as ``invalid_input`` by the application.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(_Payload):
    """Request schema for account registration."""

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    password: Optional[str] = None
    account_type: Optional[str] = Field(default=None, alias="accountType")
    phone: Optional[str] = None
    address: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = Field(default=None, alias="zip")


class VerifyRequest(_Payload):
    token: Optional[str] = None


class LoginRequest(_Payload):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(_Payload):
    email: Optional[str] = None


class ResetPasswordRequest(_Payload):
    token: Optional[str] = None
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class AccountResponse(MessageResponse):
    """Response schema carrying the sanitized account projection."""

    user: Dict[str, Any]


class LoginResponse(AccountResponse):
    token: str
    token_type: str = "bearer"


class IdentityResponse(BaseModel):
    success: bool = True
    user: Dict[str, Any]
