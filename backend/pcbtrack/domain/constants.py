# backend/pcbtrack/domain/constants.py

"""
Single source for the business constants shared by services and routers.
"""

from decimal import Decimal
from typing import Final

# Stock below this share of the monthly requirement raises a procurement trigger
PROCUREMENT_THRESHOLD_RATIO: Final[Decimal] = Decimal("0.2")

TRIGGER_OPEN: Final[str] = "open"
TRIGGER_RESOLVED: Final[str] = "resolved"
TRIGGER_STATUSES: Final[tuple] = (TRIGGER_OPEN, TRIGGER_RESOLVED)

# Synthesized part numbers: AUTO-<first 20 chars of the name>
AUTO_PART_PREFIX: Final[str] = "AUTO-"
AUTO_PART_NAME_CHARS: Final[int] = 20

IMPORT_AUTO: Final[str] = "auto"
IMPORT_COMPONENTS: Final[str] = "components"
IMPORT_BOM: Final[str] = "bom"
IMPORT_TYPES: Final[tuple] = (IMPORT_AUTO, IMPORT_COMPONENTS, IMPORT_BOM)

DEFAULT_TOP_LIMIT: Final[int] = 10
MAX_LIST_LIMIT: Final[int] = 500
