import uuid
from sqlalchemy import Boolean, Column, String, Text, DateTime, Enum, Index, func, Uuid, JSON
from sqlalchemy.orm import relationship

from shared.core.database import Base
from ...enum.space_sites_enum import PropertyType


class Property(Base):
    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    landlord_id = Column(Uuid, nullable=False)
    name = Column(String(200), nullable=False)
    property_type = Column(
        Enum(
            PropertyType,
            name="property_type_enum",
            native_enum=False,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PropertyType.APARTMENT,
        nullable=False,
    )

    # address is kept flat; normalization happens in properties_crud
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255))
    city = Column(String(120), nullable=False)
    state = Column(String(120), nullable=False)
    country = Column(String(120), nullable=False)
    postal_code = Column(String(6), nullable=False)

    amenities = Column(JSON, default=list)
    notes = Column(Text)
    is_archived = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    units = relationship("Unit", back_populates="property")

    __table_args__ = (
        Index("ix_property_landlord", "landlord_id"),
    )
