from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from ..core.db import Base

class Component(Base):
    __tablename__ = "components"

    id                        = Column(Integer, primary_key=True, autoincrement=True)
    name                      = Column(String(255), nullable=False)
    part_number               = Column(String(100), nullable=False, unique=True)
    current_stock             = Column(Numeric(14, 3), nullable=False, default=0, server_default="0")
    monthly_required_quantity = Column(Numeric(14, 3), nullable=False, default=0, server_default="0")
    created_at                = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="CK_Component_CurrentStock_NonNegative"),
        CheckConstraint("monthly_required_quantity >= 0", name="CK_Component_MonthlyReq_NonNegative"),
    )

    # deleting a component removes everything that points at it
    bom_links = relationship("BOMLink", back_populates="component", cascade="all, delete-orphan", passive_deletes=True)
    consumption = relationship("ConsumptionHistory", back_populates="component", cascade="all, delete-orphan", passive_deletes=True)
    triggers = relationship("ProcurementTrigger", back_populates="component", cascade="all, delete-orphan", passive_deletes=True)
