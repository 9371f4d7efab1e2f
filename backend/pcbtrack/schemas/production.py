# pcbtrack/schemas/production.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ProductionCreate(BaseModel):
    pcb_id: int = Field(..., ge=1)
    quantity_produced: int = Field(..., gt=0)
    quantity_ok: Optional[int] = Field(default=None, ge=0)
    quantity_scrap: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _ok_plus_scrap(self):
        if self.quantity_ok is not None and self.quantity_scrap is not None:
            if self.quantity_ok + self.quantity_scrap != self.quantity_produced:
                raise ValueError("quantity_ok + quantity_scrap must equal quantity_produced")
        return self


class ProductionLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    pcb_id: int
    quantity_produced: int
    quantity_ok: Optional[int] = None
    quantity_scrap: Optional[int] = None
    produced_at: Optional[datetime] = None
