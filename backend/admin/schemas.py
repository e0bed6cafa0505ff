# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the admin endpoints."""

from typing import List

from core.schemas import ApiModel
from auth.schemas import UserInfoResponse


# -- Requests --------------------------------------------------------------


class ResetPasswordRequest(ApiModel):
    email: str
    new_password: str


# -- Responses -------------------------------------------------------------


class UserListResponse(ApiModel):
    users: List[UserInfoResponse]
