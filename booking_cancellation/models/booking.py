from decimal import Decimal
from sqlalchemy import String, DateTime, Numeric, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, timezone
from booking_cancellation.db.session import Base
from booking_cancellation.models.offer import Offer

BOOKING_STATUSES = ("pending", "paid", "cancelled")

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)  # owner
    offer_id: Mapped[str] = mapped_column(ForeignKey("offers.id"), index=True)
    variant_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, paid, cancelled
    source: Mapped[str] = mapped_column(String(20), default="direct")  # direct|calendly

    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)  # appointment time
    booking_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    payment_intent_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    customer_email: Mapped[str] = mapped_column(String(320), default="")  # contact captured at checkout

    calendly_event_id: Mapped[str | None] = mapped_column(String(512), nullable=True)  # invitee URI from the webhook

    cancellation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by_partner: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    offer: Mapped[Offer] = relationship(lazy="joined")
