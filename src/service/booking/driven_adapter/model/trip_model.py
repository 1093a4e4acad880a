from datetime import datetime

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base
from src.platform.database.utc_datetime import UTCDateTime


class TripModel(Base):
    __tablename__ = 'trip'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    company_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    route_id: Mapped[str] = mapped_column(String(36), nullable=False)
    vehicle_id: Mapped[str] = mapped_column(String(36), nullable=False)
    departure_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    arrival_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    base_price: Mapped[int] = mapped_column(Integer, nullable=False)
    current_price: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default='scheduled', nullable=False)
