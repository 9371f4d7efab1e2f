from sqlalchemy import Column, Integer, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from ..core.db import Base

class ProductionLog(Base):
    __tablename__ = "production_logs"

    id                = Column(Integer, primary_key=True, autoincrement=True)
    pcb_id            = Column(Integer, ForeignKey("pcbs.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity_produced = Column(Integer, nullable=False)
    quantity_ok       = Column(Integer)
    quantity_scrap    = Column(Integer)
    produced_at       = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint("quantity_produced > 0", name="CK_ProductionLog_Qty_Positive"),
        CheckConstraint("quantity_ok IS NULL OR quantity_ok >= 0", name="CK_ProductionLog_Ok_NonNegative"),
        CheckConstraint("quantity_scrap IS NULL OR quantity_scrap >= 0", name="CK_ProductionLog_Scrap_NonNegative"),
        CheckConstraint(
            "quantity_ok IS NULL OR quantity_scrap IS NULL OR quantity_produced = quantity_ok + quantity_scrap",
            name="CK_ProductionLog_QuantitySum",
        ),
    )

    pcb         = relationship("PCB", back_populates="production_logs")
    consumption = relationship(
        "ConsumptionHistory",
        back_populates="production_log",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
