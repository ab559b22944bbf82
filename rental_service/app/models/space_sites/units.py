import uuid
from sqlalchemy import (
    Boolean, Column, Integer, String, Numeric, ForeignKey, DateTime, Enum, Index, UniqueConstraint, func, Uuid, JSON
)
from sqlalchemy.orm import relationship

from shared.core.database import Base
from ...enum.space_sites_enum import UnitStatus


class Unit(Base):
    __tablename__ = "units"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id = Column(Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    # copied from the property so ownership checks never traverse it
    landlord_id = Column(Uuid, nullable=False)
    unit_number = Column(String(32), nullable=False)
    bedrooms = Column(Integer, default=0, nullable=False)
    bathrooms = Column(Integer, default=0, nullable=False)
    sqft = Column(Integer)
    rent_amount = Column(Numeric(14, 2), nullable=False)
    deposit_amount = Column(Numeric(14, 2))
    status = Column(
        Enum(
            UnitStatus,
            name="unit_status_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=UnitStatus.AVAILABLE,
        nullable=False,
    )
    images = Column(JSON, default=list)
    is_archived = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    property = relationship("Property", back_populates="units")
    applications = relationship("Application", back_populates="unit")
    leases = relationship("Lease", back_populates="unit")
    tickets = relationship("MaintenanceTicket", back_populates="unit")

    __table_args__ = (
        UniqueConstraint("property_id", "unit_number", name="uq_unit_property_number"),
        Index("ix_unit_landlord", "landlord_id"),
        Index("ix_unit_status", "status"),
    )
