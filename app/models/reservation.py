from sqlalchemy import Column, String, Integer, Float, Date, DateTime, Enum, JSON, Index, UniqueConstraint, text
import enum
from .base import BaseModel


class ReservationStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingType(enum.Enum):
    INDIVIDUAL = "individual"
    TEAM = "team"


# Statuses that hold a slot; a pending reservation awaiting approval holds it too
BLOCKING_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)

ALLOWED_TRANSITIONS = {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ReservationStatus.CONFIRMED: {ReservationStatus.CANCELLED, ReservationStatus.COMPLETED},
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.COMPLETED: set(),
}

_BLOCKING_VALUES = '(' + ', '.join(f"'{status.name}'" for status in BLOCKING_STATUSES) + ')'


class Reservation(BaseModel):
    __tablename__ = 'reservations'

    court_id = Column(String(64), nullable=False)
    company_id = Column(String(64), index=True)

    # Individual user id or team id
    subject_id = Column(String(64), nullable=False)
    booking_type = Column(Enum(BookingType), nullable=False, default=BookingType.INDIVIDUAL)
    booked_by = Column(String(64))
    team_size = Column(Integer, nullable=False, default=1)

    # Schedule (court local wall-clock)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes, frozen at creation

    status = Column(Enum(ReservationStatus), nullable=False, default=ReservationStatus.CONFIRMED, index=True)

    # Pricing, frozen at creation
    price = Column(Float, nullable=False)
    price_per_hour = Column(Float)

    notes = Column(String(500))
    cancellation_reason = Column(String(200))

    confirmed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    completed_at = Column(DateTime)

    # Display snapshots, carried but never interpreted here
    court_details = Column(JSON)
    company_details = Column(JSON)
    subject_details = Column(JSON)

    __table_args__ = (
        Index('ix_reservations_court_date_start', 'court_id', 'date', 'start_time'),
        Index('ix_reservations_subject_date', 'subject_id', 'date'),
        # Store-level guard: one live reservation per court/date/start
        Index(
            'uq_reservations_live_slot', 'court_id', 'date', 'start_time',
            unique=True,
            sqlite_where=text(f"status IN {_BLOCKING_VALUES}"),
            postgresql_where=text(f"status IN {_BLOCKING_VALUES}"),
        ),
    )

    def can_transition_to(self, new_status: ReservationStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]


class CourtDayLock(BaseModel):
    """Row that writers for one court/date lock before touching reservations"""
    __tablename__ = 'court_day_locks'

    court_id = Column(String(64), nullable=False)
    date = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint('court_id', 'date', name='uq_court_day_lock'),
    )
