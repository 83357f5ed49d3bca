from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..core.database import Base

class BookingStatusRecord(Base):
    """
    Fixed lookup rows: 1 PENDING, 2 CONFIRMED, 3 CANCELLED, 4 COMPLETED
    """
    __tablename__ = "booking_status"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)

class BookingRecord(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    table_id = Column(Integer, ForeignKey("tables.id"), nullable=False)
    status_id = Column(Integer, ForeignKey("booking_status.id"), nullable=False)
    guests = Column(Integer, nullable=False)
    booking_date_time = Column(DateTime, nullable=False, index=True)
    special_requests = Column(Text)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship("CustomerRecord")
    table = relationship("TableRecord")
