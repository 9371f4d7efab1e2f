from .component import Component
from .pcb import PCB
from .bom_link import BOMLink
from .production_log import ProductionLog
from .consumption_history import ConsumptionHistory
from .procurement_trigger import ProcurementTrigger
__all__ = ["Component","PCB","BOMLink","ProductionLog","ConsumptionHistory","ProcurementTrigger"]
