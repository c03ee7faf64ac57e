from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from booking_cancellation.db.session import get_db
from booking_cancellation.api.deps import get_current_user, get_cancellation_gateways
from booking_cancellation.core.exceptions import CancellationError
from booking_cancellation.models.user import User
from booking_cancellation.schemas.cancellation import CancellationOut, RefundPreviewOut
from booking_cancellation.services.cancellation_service import cancel_booking, preview_refund
from booking_cancellation.services.gateways import CancellationGateways

router = APIRouter(tags=["bookings"])

@router.post("/bookings/{booking_id}/cancel", response_model=CancellationOut)
def cancel_my_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    gateways: CancellationGateways = Depends(get_cancellation_gateways),
):
    # Rejections are a normal 200 with `error` set; only transport/auth problems are HTTP errors.
    result = cancel_booking(db, booking_id, user, gateways=gateways)
    return CancellationOut(**result.as_response())

@router.get("/bookings/{booking_id}/refund-preview", response_model=RefundPreviewOut)
def refund_preview(booking_id: str, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        decision = preview_refund(db, booking_id, user)
    except CancellationError as e:
        status = 404 if e.code == "booking_not_found" else 409 if e.code == "already_cancelled" else 403 if e.code == "not_owner" else 400
        raise HTTPException(status_code=status, detail=e.message)
    return RefundPreviewOut(**decision.as_dict())
