# rental_store/schemas/contact.py
from pydantic import EmailStr, field_validator
from sqlmodel import SQLModel


class ContactMessage(SQLModel):
    """
    Contact form submission relayed to the support inbox.
    """

    name: str
    email: EmailStr
    phone: str | None = None
    subject: str
    message: str

    @field_validator("name", "subject", "message")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v
