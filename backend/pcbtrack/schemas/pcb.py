# pcbtrack/schemas/pcb.py
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class PCBCreate(BaseModel):
    pcb_name: str = Field(min_length=1, max_length=255)
    revision: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=1000)


class PCBRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    pcb_name: str
    revision: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class BOMLinkCreate(BaseModel):
    component_id: int = Field(..., ge=1)
    quantity_per_pcb: int = Field(..., gt=0)


class BOMLinkUpdate(BaseModel):
    quantity_per_pcb: int = Field(..., gt=0)


class BOMLinkRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    pcb_id: int
    component_id: int
    quantity_per_pcb: int


class BOMLineRead(BaseModel):
    mapping_id: int
    component_id: int
    name: str
    part_number: str
    quantity_per_pcb: int
    current_stock: Decimal
    monthly_required_quantity: Decimal

    @field_serializer("current_stock", "monthly_required_quantity")
    def _ser_qty(self, v: Decimal):
        return float(v)
