# backend/pcbtrack/domain/errors.py
"""
Business errors raised by the services.

They extend ``HTTPException`` so routers can let them propagate unchanged;
``main.py`` renders them through the standard ``fail`` envelope together with
``code`` and ``meta``.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status


class InventoryError(HTTPException):
    code = "inventory_error"
    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, meta: Optional[Dict[str, Any]] = None, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=message)
        self.message = message
        self.meta = meta or {}


class ValidationFailed(InventoryError):
    code = "validation_error"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFound(InventoryError):
    code = "not_found"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, ident: Any):
        super().__init__(f"{entity} not found", meta={"entity": entity, "id": ident})
        self.entity = entity
        self.ident = ident


class Conflict(InventoryError):
    code = "conflict"
    status_code_default = status.HTTP_409_CONFLICT


class EmptyBOM(InventoryError):
    code = "empty_bom"

    def __init__(self, pcb_id: int):
        super().__init__(
            "PCB has no components in BOM. Cannot proceed with production.",
            meta={"pcb_id": pcb_id},
        )
        self.pcb_id = pcb_id


class InsufficientStock(InventoryError):
    code = "insufficient_stock"

    def __init__(self, shortages: List[Dict[str, Any]]):
        super().__init__("Insufficient stock for production", meta={"insufficient_stock": shortages})
        self.shortages = shortages


class TransactionError(InventoryError):
    code = "transaction_error"
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, meta: Optional[Dict[str, Any]] = None):
        super().__init__(message, meta={"rolled_back": True, **(meta or {})})


class SheetNotFound(InventoryError):
    code = "sheet_not_found"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, sheet_name: str):
        super().__init__(f'Sheet "{sheet_name}" not found', meta={"sheet": sheet_name})
        self.sheet_name = sheet_name
