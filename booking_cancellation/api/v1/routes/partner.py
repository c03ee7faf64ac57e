from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from booking_cancellation.db.session import get_db
from booking_cancellation.api.deps import get_current_user, get_cancellation_gateways
from booking_cancellation.models.user import User
from booking_cancellation.schemas.cancellation import PartnerCancellationIn, PartnerCancellationOut
from booking_cancellation.services.gateways import CancellationGateways
from booking_cancellation.services.partner_cancellation_service import cancel_booking_as_partner

router = APIRouter(tags=["partner"])

@router.post("/partner/bookings/{booking_id}/cancel", response_model=PartnerCancellationOut)
def partner_cancel_booking(
    booking_id: str,
    body: PartnerCancellationIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    gateways: CancellationGateways = Depends(get_cancellation_gateways),
):
    result = cancel_booking_as_partner(db, booking_id, user, body.reason, gateways=gateways)
    return PartnerCancellationOut(**result.as_response())
