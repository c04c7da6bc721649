"""
Shared Pydantic building blocks.

Payloads use camelCase on the wire (the admin UI's convention); snake_case
field names are accepted as well.
"""

from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


# Two-decimal amount, emitted as a JSON number
Money = Annotated[
    Decimal,
    Field(ge=0, max_digits=15, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ItemDetail(CamelModel):
    """One line item of a transaction or a reimbursement."""
    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    qty: int = Field(1, ge=0)
    price: Money
    total: Money
    file_url: Optional[str] = Field(None, max_length=1024)
