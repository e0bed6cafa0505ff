# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the account endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from core.schemas import ApiModel


# -- Requests --------------------------------------------------------------


class SignupRequest(ApiModel):
    name: str = Field(..., min_length=1)
    dept: str = Field(..., min_length=1)
    designation: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    contact_number: str = Field(..., min_length=1)
    employee_number: str = Field(..., min_length=1)
    role: Literal["employee", "admin"] = "employee"
    password: str = Field(..., min_length=1)


class LoginRequest(ApiModel):
    email: str
    password: str


class ChangePasswordRequest(ApiModel):
    old_password: str
    new_password: str


# -- Responses -------------------------------------------------------------


class UserInfoResponse(ApiModel):
    """Public profile – the credential is never part of it."""

    id: int
    name: str
    dept: str
    designation: str
    email: str
    contact_number: str
    employee_number: str
    role: str
    created_at: datetime
    updated_at: datetime


class SignupResponse(ApiModel):
    message: str
    token: str
    user: UserInfoResponse


class LoginResponse(ApiModel):
    message: str
    token: str
    role: str
