# pcbtrack/routers/imports.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from ..core.api import ok
from ..core.db import get_db
from ..domain.constants import IMPORT_AUTO
from ..services.bom_extractor import analyze_structure, suggest_import_type
from ..services.import_service import import_workbook
from ..services.sheet_reader import read_workbook

router = APIRouter(prefix="/import", tags=["import"])


def _workbook(file: UploadFile):
    data = file.file.read()
    return read_workbook(file.filename or "", data)


@router.post("/preview")
def preview(file: UploadFile = File(...)):
    wb = _workbook(file)
    return ok({"file_name": file.filename, **analyze_structure(wb)})


@router.post("/analyze")
def analyze(file: UploadFile = File(...)):
    wb = _workbook(file)
    suggestions = [
        {
            "sheet_name": s.name,
            "row_count": len(s.rows),
            "detected_type": suggest_import_type(s.headers),
            "headers": s.headers,
            "sample_data": s.rows[:2],
        }
        for s in wb
    ]
    return ok({"file_name": file.filename, "suggestions": suggestions})


@router.post("/excel")
def import_excel(
    file: UploadFile = File(...),
    sheet_names: Optional[List[str]] = Form(None),
    import_type: str = Form(IMPORT_AUTO),
    db: Session = Depends(get_db),
):
    """Imports the given sheets (all sheets when omitted) in one transaction."""
    wb = _workbook(file)
    summary = import_workbook(db, workbook=wb, sheet_names=sheet_names, import_type=import_type)
    return ok(summary.as_dict(), meta={"file_name": file.filename, "available_sheets": wb.sheet_names})
