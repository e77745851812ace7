from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, Index, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    STARTED = "started"
    COMPLETE = "complete"

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # Backstop against concurrent creates: only catches identical start times
        UniqueConstraint("doctor_id", "start", name="uq_bookings_doctor_start"),
        Index("ix_bookings_patient_start", "patient_id", "start"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Parties (immutable after creation)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Slot
    status = Column(SQLEnum(BookingStatus), nullable=False, default=BookingStatus.PENDING)
    start = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    # Notes
    patient_notes = Column(Text, nullable=True)
    doctor_notes = Column(Text, nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("User", foreign_keys=[patient_id])
    doctor = relationship("User", foreign_keys=[doctor_id])

    def __repr__(self):
        return f"<Booking(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, start='{self.start}')>"
