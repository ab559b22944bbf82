import uuid
from sqlalchemy import (
    Boolean, Column, Integer, String, Text, Date, Numeric, ForeignKey, DateTime, Enum, Index, func, Uuid, JSON
)
from sqlalchemy.orm import relationship

from shared.core.database import Base
from ...enum.leasing_tenants_enum import (
    LeaseStatus, LeaseType, RentFrequency, LeasePaymentMethod, LateFeeType,
    PetsAllowed, SmokingAllowed, ParkingIncluded, Furnished
)


def _str_enum(enum_cls, name):
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda x: [e.value for e in x],
    )


class Lease(Base):
    __tablename__ = "leases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id = Column(Uuid, ForeignKey("applications.id", ondelete="SET NULL"), nullable=True)
    unit_id = Column(Uuid, ForeignKey("units.id", ondelete="CASCADE"), nullable=False)
    landlord_id = Column(Uuid, nullable=False)
    tenant_id = Column(Uuid, nullable=False)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    rent_amount = Column(Numeric(14, 2), nullable=False)
    deposit_amount = Column(Numeric(14, 2), nullable=False)
    due_day = Column(Integer, default=1, nullable=False)
    status = Column(
        _str_enum(LeaseStatus, "lease_status_enum"),
        default=LeaseStatus.PENDING,
        nullable=False,
    )

    # descriptive terms
    lease_title = Column(String(200))
    lease_type = Column(_str_enum(LeaseType, "lease_type_enum"), default=LeaseType.FIXED)
    rent_frequency = Column(_str_enum(RentFrequency, "rent_frequency_enum"), default=RentFrequency.MONTHLY)
    payment_method = Column(_str_enum(LeasePaymentMethod, "lease_payment_method_enum"),
                            default=LeasePaymentMethod.E_TRANSFER)
    late_fee_type = Column(_str_enum(LateFeeType, "late_fee_type_enum"), default=LateFeeType.NONE)
    late_fee_value = Column(Numeric(14, 2), default=0)
    discount_notes = Column(Text)
    pets_allowed = Column(_str_enum(PetsAllowed, "pets_allowed_enum"), default=PetsAllowed.NO)
    smoking_allowed = Column(_str_enum(SmokingAllowed, "smoking_allowed_enum"), default=SmokingAllowed.NO)
    parking_included = Column(_str_enum(ParkingIncluded, "parking_included_enum"), default=ParkingIncluded.NO)
    furnished = Column(_str_enum(Furnished, "furnished_enum"), default=Furnished.NO)
    utilities_included = Column(JSON, default=list)
    emergency_contact = Column(JSON)  # {name, phone, relation}
    additional_terms = Column(Text)
    documents = Column(JSON, default=list)

    is_archived = Column(Boolean, default=False, nullable=False)
    accepted_at = Column(DateTime(timezone=True))
    terminated_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    unit = relationship("Unit", back_populates="leases")
    application = relationship("Application", back_populates="leases")
    invoices = relationship("Invoice", back_populates="lease")

    __table_args__ = (
        # at most one pending/active lease per unit
        Index(
            "uq_lease_open_unit",
            "unit_id",
            unique=True,
            postgresql_where=status.in_([LeaseStatus.PENDING.value, LeaseStatus.ACTIVE.value]),
            sqlite_where=status.in_([LeaseStatus.PENDING.value, LeaseStatus.ACTIVE.value]),
        ),
        Index("ix_lease_tenant", "tenant_id"),
        Index("ix_lease_landlord", "landlord_id"),
        Index("ix_lease_status_end", "status", "end_date"),
    )
