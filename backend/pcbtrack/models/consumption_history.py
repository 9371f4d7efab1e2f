from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from ..core.db import Base

class ConsumptionHistory(Base):
    __tablename__ = "consumption_history"

    id                = Column(Integer, primary_key=True, autoincrement=True)
    component_id      = Column(Integer, ForeignKey("components.id", ondelete="CASCADE"), nullable=False, index=True)
    production_log_id = Column(Integer, ForeignKey("production_logs.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity_deducted = Column(Numeric(14, 3), nullable=False)
    created_at        = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint("quantity_deducted > 0", name="CK_Consumption_Qty_Positive"),
    )

    component      = relationship("Component",     back_populates="consumption")
    production_log = relationship("ProductionLog", back_populates="consumption")
