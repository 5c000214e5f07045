"""Pydantic schemas for the public authentication endpoints."""

from pydantic import BaseModel, EmailStr, Field

from app.domain.contracts import CreateUserInput


class RegisterRequest(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., max_length=128)

    def to_input(self) -> CreateUserInput:
        return CreateUserInput(email=self.email, username=self.username, password=self.password)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class VerifyEmailRequest(BaseModel):
    token: str


class EmailRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(..., max_length=128)
