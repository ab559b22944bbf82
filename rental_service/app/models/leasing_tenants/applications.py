import uuid
from sqlalchemy import Column, Text, ForeignKey, DateTime, Enum, Index, func, Uuid, JSON
from sqlalchemy.orm import relationship

from shared.core.database import Base
from ...enum.leasing_tenants_enum import ApplicationStatus


class Application(Base):
    __tablename__ = "applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    unit_id = Column(Uuid, ForeignKey("units.id", ondelete="CASCADE"), nullable=False)
    tenant_id = Column(Uuid, nullable=False)
    status = Column(
        Enum(
            ApplicationStatus,
            name="application_status_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ApplicationStatus.PENDING,
        nullable=False,
    )
    note = Column(Text)
    documents = Column(JSON, default=list)
    decided_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    unit = relationship("Unit", back_populates="applications")
    leases = relationship("Lease", back_populates="application")

    __table_args__ = (
        # one pending application per tenant and unit
        Index(
            "uq_application_pending_tenant_unit",
            "tenant_id",
            "unit_id",
            unique=True,
            postgresql_where=(status == ApplicationStatus.PENDING.value),
            sqlite_where=(status == ApplicationStatus.PENDING.value),
        ),
        Index("ix_application_tenant_created", "tenant_id", "created_at"),
    )
