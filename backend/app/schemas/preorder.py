"""Pre-order Schemas — newsletter sign-up body."""

from pydantic import BaseModel, Field, field_validator


class PreorderRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320)

    @field_validator("name", "email")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("value cannot be empty or whitespace")
        return v
