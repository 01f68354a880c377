"""User response schema - identity as provided by the auth collaborator."""

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: int
    email: str
    display_name: str
    is_active: bool

    model_config = {"from_attributes": True}


class PartySummary(BaseModel):
    """Counterparty shown next to a loan."""

    id: int
    display_name: str
    email: str | None = None
