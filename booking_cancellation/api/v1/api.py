from fastapi import APIRouter
from booking_cancellation.api.v1.routes.bookings import router as bookings_router
from booking_cancellation.api.v1.routes.partner import router as partner_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(bookings_router)
api_router.include_router(partner_router)
