"""
Account form contexts returned by the sign-in and sign-up pages.
"""

from typing import Dict, List

from pydantic import BaseModel, Field


class SignInFormResponse(BaseModel):
    action: str = Field(default="/users/sign_in")
    method: str = Field(default="POST")
    email: str = Field(default="")
    message: str = Field(
        default="",
        description="Notice shown above the form (e.g. why the user was sent here)",
    )


class SignUpFormResponse(BaseModel):
    action: str = Field(default="/users")
    method: str = Field(default="POST")
    email: str = Field(default="")
    errors: Dict[str, List[str]] = Field(default_factory=dict)
