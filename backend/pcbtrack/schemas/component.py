# pcbtrack/schemas/component.py
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class ComponentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    part_number: str = Field(min_length=1, max_length=100)
    current_stock: Decimal = Field(default=Decimal("0"), ge=0)
    monthly_required_quantity: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("name", "part_number")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ComponentPatch(BaseModel):
    """Partial update; only the fields present in the request are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    part_number: Optional[str] = Field(default=None, min_length=1, max_length=100)
    current_stock: Optional[Decimal] = Field(default=None, ge=0)
    monthly_required_quantity: Optional[Decimal] = Field(default=None, ge=0)

    def changes(self) -> dict:
        # explicit nulls are not allowed for non-nullable columns
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class ComponentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    part_number: str
    current_stock: Decimal
    monthly_required_quantity: Decimal
    created_at: Optional[datetime] = None

    @field_serializer("current_stock", "monthly_required_quantity")
    def _ser_qty(self, v: Decimal):
        return float(v)
