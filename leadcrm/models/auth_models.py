"""Models describing the authenticated caller."""

from pydantic import BaseModel, Field

from leadcrm.services.leads.statuses import Role


class Principal(BaseModel):
    """The acting user of a request, as carried by the access token."""

    user_name: str = Field(..., description="Normalized user name of the caller.")
    role: Role = Field(..., description="Role of the caller (admin or user).")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_agent(self) -> bool:
        return self.role == Role.USER


class LoginRequest(BaseModel):
    """Credentials posted to the login endpoint."""

    user_name: str = Field(..., description="User name, compared case-insensitively.")
    password: str = Field(..., description="Plain text password.")


class TokenResponse(BaseModel):
    """Data model for the response of the login endpoint."""

    token: str = Field(..., description="Bearer token for the Authorization header.")
    role: Role
    user_name: str
