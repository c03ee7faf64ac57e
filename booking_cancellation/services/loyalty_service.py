import uuid, json
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from booking_cancellation.models.loyalty import LoyaltyAccount, LoyaltyTransaction

class InsufficientPointsError(RuntimeError):
    pass

def get_balance(db: Session, user_id: str) -> int:
    acct = db.get(LoyaltyAccount, user_id)
    return int(acct.points_balance) if acct else 0

def award_points(db: Session, user_id: str, amount: int, reason: str, metadata: dict | None = None) -> LoyaltyTransaction:
    """Add (or, with a negative amount, take back) points. Balance and lifetime move together.

    Points a member has already spent stay spent: a reversal that would push the
    balance below zero raises InsufficientPointsError and changes nothing.
    """
    amount = int(amount)
    if amount == 0:
        raise ValueError("amount must be non-zero")

    acct = db.get(LoyaltyAccount, user_id, with_for_update=True)
    if acct is None:
        if amount < 0:
            raise InsufficientPointsError(f"user {user_id} has no loyalty balance")
        acct = LoyaltyAccount(user_id=user_id, points_balance=0, lifetime_points=0)
        db.add(acct)

    if acct.points_balance + amount < 0:
        raise InsufficientPointsError(
            f"cannot remove {-amount} points from user {user_id} (balance {acct.points_balance})"
        )

    acct.points_balance += amount
    acct.lifetime_points = max(acct.lifetime_points + amount, 0)
    acct.updated_at = datetime.now(timezone.utc)
    tx = LoyaltyTransaction(
        id=str(uuid.uuid4()),
        user_id=user_id,
        amount=amount,
        reason=reason,
        metadata_json=json.dumps(metadata or {}, ensure_ascii=False),
    )
    db.add(tx)
    db.commit()
    return tx
