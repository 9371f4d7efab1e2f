from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from ..core.db import Base

class BOMLink(Base):
    __tablename__ = "pcb_components"

    id               = Column(Integer, primary_key=True, autoincrement=True)
    pcb_id           = Column(Integer, ForeignKey("pcbs.id", ondelete="CASCADE"), nullable=False, index=True)
    component_id     = Column(Integer, ForeignKey("components.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity_per_pcb = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("quantity_per_pcb > 0", name="CK_BOMLink_Qty_Positive"),
        UniqueConstraint("pcb_id", "component_id", name="UQ_BOMLink_PCB_Component"),
    )

    pcb       = relationship("PCB",       back_populates="bom_links")
    component = relationship("Component", back_populates="bom_links")
