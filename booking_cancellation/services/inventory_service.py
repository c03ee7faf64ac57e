from sqlalchemy import update
from sqlalchemy.orm import Session
from booking_cancellation.models.offer import OfferVariant

def increment_variant_stock(db: Session, variant_id: str) -> bool:
    """Give one unit back to a capacity-limited variant. False if there is nothing to restore."""
    res = db.execute(
        update(OfferVariant)
        .where(OfferVariant.id == variant_id, OfferVariant.stock.isnot(None))
        .values(stock=OfferVariant.stock + 1)
    )
    db.commit()
    return res.rowcount == 1

def is_capacity_limited(db: Session, variant_id: str | None) -> bool:
    if not variant_id:
        return False
    variant = db.get(OfferVariant, variant_id)
    return variant is not None and variant.stock is not None
