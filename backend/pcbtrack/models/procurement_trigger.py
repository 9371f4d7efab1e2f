from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint, Index, func, text
from sqlalchemy.orm import relationship
from ..core.db import Base

class ProcurementTrigger(Base):
    __tablename__ = "procurement_triggers"

    id           = Column(Integer, primary_key=True, autoincrement=True)
    component_id = Column(Integer, ForeignKey("components.id", ondelete="CASCADE"), nullable=False)
    trigger_date = Column(DateTime, nullable=False, server_default=func.now())
    status       = Column(String(20), nullable=False, server_default=text("'open'"))

    __table_args__ = (
        CheckConstraint("status in ('open','resolved')", name="CK_ProcurementTrigger_Status"),
        Index("IX_ProcurementTrigger_Status", "status"),
        # at most one open trigger per component
        Index(
            "UX_ProcurementTrigger_Component_Open",
            "component_id",
            unique=True,
            sqlite_where=text("status = 'open'"),
            postgresql_where=text("status = 'open'"),
            mssql_where=text("status = 'open'"),
        ),
    )

    component = relationship("Component", back_populates="triggers")
