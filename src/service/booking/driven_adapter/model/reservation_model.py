from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base
from src.platform.database.utc_datetime import UTCDateTime


class ReservationModel(Base):
    __tablename__ = 'reservation'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # UUID7
    code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    trip_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    company_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    seat_ids: Mapped[list] = mapped_column(JSON, nullable=False)
    passengers: Mapped[list] = mapped_column(JSON, nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    channel: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default='pending', nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)


class ReservationSeatModel(Base):
    """One row per seat of a PENDING or CONFIRMED reservation."""

    __tablename__ = 'reservation_seat'
    __table_args__ = (UniqueConstraint('trip_id', 'seat_id', name='uq_reservation_seat_trip_seat'),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trip_id: Mapped[str] = mapped_column(String(36), nullable=False)
    seat_id: Mapped[str] = mapped_column(String(8), nullable=False)
    reservation_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
