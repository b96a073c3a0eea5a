# authgate/schemas/auth.py
from __future__ import annotations
from typing import Optional, Annotated, Literal
from pydantic import AfterValidator, BaseModel, EmailStr, Field
from pydantic import StringConstraints

from authgate.core.password_policy import validate_password

# ---------- Shared types ----------
NameStr = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=1,
        max_length=120,
    )
]

# strength rules live in core.password_policy
PasswordStr = Annotated[str, AfterValidator(validate_password)]

TokenStr = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=1,
        max_length=512,
    )
]

# ---------- Login ----------
class LoginIn(BaseModel):
    email: EmailStr
    # no strength rule here: old passwords must still be able to log in
    password: str = Field(min_length=1)

# ---------- Register ----------
class RegisterIn(BaseModel):
    email: EmailStr
    name: NameStr
    password: PasswordStr

# ---------- Verification ----------
class VerifyTokenIn(BaseModel):
    token: TokenStr

class ResendVerificationIn(BaseModel):
    email: EmailStr

# ---------- Password reset ----------
class PasswordResetStartIn(BaseModel):
    email: EmailStr

class PasswordResetCompleteIn(BaseModel):
    token: TokenStr
    new_password: PasswordStr

# ---------- Result ----------
class ActionResult(BaseModel):
    status: Literal[200, 400]
    message: str
    # machine-readable kind, see core.errors (None on success)
    error: Optional[str] = None
    access_token: Optional[str] = None
