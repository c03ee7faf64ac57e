from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, timezone
from booking_cancellation.db.session import Base
from booking_cancellation.models.partner import Partner

CANCELLATION_POLICIES = ("flexible", "moderate", "strict", "non_refundable")
BOOKING_TYPES = ("event", "purchase")

class Offer(Base):
    __tablename__ = "offers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), default="")
    cancellation_policy: Mapped[str | None] = mapped_column(String(20), nullable=True)  # flexible|moderate|strict|non_refundable
    booking_type: Mapped[str | None] = mapped_column(String(20), nullable=True)  # event|purchase
    event_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    partner_id: Mapped[str] = mapped_column(ForeignKey("partners.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    partner: Mapped[Partner] = relationship(lazy="joined")


class OfferVariant(Base):
    __tablename__ = "offer_variants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    offer_id: Mapped[str] = mapped_column(ForeignKey("offers.id"), index=True)
    name: Mapped[str] = mapped_column(String(120), default="")
    stock: Mapped[int | None] = mapped_column(Integer, nullable=True)  # NULL = not capacity-limited
