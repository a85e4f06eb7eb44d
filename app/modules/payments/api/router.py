from typing import List, Optional

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from app.core.responses import ApiResponse, ok
from app.db.session import get_db
from app.deps import CurrentUser, authenticate
from app.middleware.rate_limit import read_limiter, write_limiter
from app.modules.payments.schemas.payment import (
    PaymentConfirm,
    PaymentCreate,
    PaymentFail,
    PaymentHistory,
    PaymentOut,
    PricingTierOut,
)
from app.modules.payments.services.payment import PaymentService

router = APIRouter()
tiers_router = APIRouter()


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


@router.post(
    "",
    response_model=ApiResponse[PaymentOut],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(write_limiter)],
)
def create_payment(
    data: PaymentCreate,
    current_user: CurrentUser = Depends(authenticate),
    payment_service: PaymentService = Depends(get_payment_service),
):
    """Start a Pending payment for someone else's post"""
    return ok(payment_service.create_payment(current_user.user_id, data))


@router.get("/user/history", response_model=ApiResponse[PaymentHistory], dependencies=[Depends(read_limiter)])
def payment_history(
    current_user: CurrentUser = Depends(authenticate),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return ok(payment_service.get_history(current_user.user_id))


@router.get("/post/{post_id}", response_model=ApiResponse[List[PaymentOut]], dependencies=[Depends(read_limiter)])
def post_payments(
    post_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return ok(payment_service.get_post_payments(post_id, current_user.user_id))


@router.get("/{payment_id}", response_model=ApiResponse[PaymentOut], dependencies=[Depends(read_limiter)])
def read_payment(
    payment_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return ok(payment_service.get_payment(payment_id, current_user.user_id))


@router.post("/{payment_id}/confirm", response_model=ApiResponse[PaymentOut], dependencies=[Depends(write_limiter)])
def confirm_payment(
    data: PaymentConfirm,
    payment_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return ok(payment_service.confirm_payment(payment_id, current_user.user_id, data))


@router.post("/{payment_id}/fail", response_model=ApiResponse[PaymentOut], dependencies=[Depends(write_limiter)])
def fail_payment(
    data: Optional[PaymentFail] = None,
    payment_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return ok(payment_service.fail_payment(payment_id, current_user.user_id, data.reason if data else None))


@router.post("/{payment_id}/cancel", response_model=ApiResponse[PaymentOut], dependencies=[Depends(write_limiter)])
def cancel_payment(
    payment_id: int = Path(..., gt=0),
    current_user: CurrentUser = Depends(authenticate),
    payment_service: PaymentService = Depends(get_payment_service),
):
    return ok(payment_service.cancel_payment(payment_id, current_user.user_id))


@tiers_router.get("", response_model=ApiResponse[List[PricingTierOut]], dependencies=[Depends(read_limiter)])
def list_pricing_tiers(payment_service: PaymentService = Depends(get_payment_service)):
    """Active pricing tiers, cheapest first"""
    return ok(payment_service.list_pricing_tiers())
