from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship
from ..core.db import Base

class PCB(Base):
    __tablename__ = "pcbs"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    pcb_name    = Column(String(255), nullable=False, unique=True)
    revision    = Column(String(50))
    description = Column(String(1000))
    created_at  = Column(DateTime, nullable=False, server_default=func.now())

    # 1 PCB -> N BOM lines / N production runs
    bom_links = relationship(
        "BOMLink",
        back_populates="pcb",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    production_logs = relationship(
        "ProductionLog",
        back_populates="pcb",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
