import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from marketplace.presentation.schemas import (
    CreateOrderRequest, CheckoutRequest, TransitionStatusRequest, ApproveRejectRequest,
    ConfirmOrderRequest, CancelOrderRequest, OrderResponse, ErrorResponse
)
from marketplace.application.create_order import (
    CreateOrderUseCase, CreateOrderDTO, CheckoutUseCase, CheckoutDTO
)
from marketplace.application.get_order import GetOrderUseCase, ListOrdersUseCase
from marketplace.application.update_status import (
    TransitionOrderStatusUseCase, TransitionStatusDTO,
    ApproveRejectOrderUseCase, ApproveRejectDTO,
    ConfirmOrderUseCase, ConfirmOrderDTO,
    CancelOrderUseCase, CancelOrderDTO
)
from marketplace.domain.models import Actor, OrderFilters, OrderStatus
from marketplace.domain.exceptions import (
    ConflictError, DomainError, ForbiddenError, InfrastructureError, InvalidTransitionError,
    NotFoundError, ProductNotApprovedError, ValidationError
)
from marketplace.infrastructure.unit_of_work import UnitOfWork
from marketplace.infrastructure.http_clients import HTTPProductCatalogClient, HTTPUserDirectoryClient
from marketplace.database import get_session_factory
from marketplace.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


# Collaborators
def get_unit_of_work():
    return UnitOfWork(get_session_factory())


def get_product_catalog():
    return HTTPProductCatalogClient(settings.PRODUCT_CATALOG_URL, settings.API_TOKEN, settings.HTTP_TIMEOUT)


def get_user_directory():
    return HTTPUserDirectoryClient(settings.USER_DIRECTORY_URL, settings.API_TOKEN, settings.HTTP_TIMEOUT)


async def get_current_actor(
    x_user_id: Optional[str] = Header(default=None),
    directory=Depends(get_user_directory)
) -> Actor:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="X-User-Id header is required")
    try:
        actor = await directory.get_actor(x_user_id)
    except InfrastructureError as e:
        raise to_http_error(e)
    if not actor:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return actor


# Use case factories
def get_create_order_use_case(uow=Depends(get_unit_of_work), catalog=Depends(get_product_catalog)):
    return CreateOrderUseCase(uow, catalog)


def get_checkout_use_case(uow=Depends(get_unit_of_work), catalog=Depends(get_product_catalog)):
    return CheckoutUseCase(uow, catalog)


def get_get_order_use_case(uow=Depends(get_unit_of_work)):
    return GetOrderUseCase(uow)


def get_list_orders_use_case(uow=Depends(get_unit_of_work)):
    return ListOrdersUseCase(uow)


def get_transition_use_case(uow=Depends(get_unit_of_work)):
    return TransitionOrderStatusUseCase(uow)


def get_approve_reject_use_case(uow=Depends(get_unit_of_work)):
    return ApproveRejectOrderUseCase(uow)


def get_confirm_use_case(uow=Depends(get_unit_of_work)):
    return ConfirmOrderUseCase(uow)


def get_cancel_use_case(uow=Depends(get_unit_of_work)):
    return CancelOrderUseCase(uow)


def to_http_error(e: Exception) -> HTTPException:
    """Domain / infrastructure error → HTTP response"""
    if isinstance(e, InvalidTransitionError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(e),
                "current_status": getattr(e.current, "value", str(e.current)),
                "target_status": getattr(e.target, "value", str(e.target)),
                "role": getattr(e.role, "value", str(e.role)),
            }
        )
    if isinstance(e, (ValidationError, ProductNotApprovedError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, DomainError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.error(f"Infrastructure failure: {e}")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service unavailable")


ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post(
    "/orders",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    status_code=status.HTTP_201_CREATED
)
async def create_order(
    request: CreateOrderRequest,
    actor: Actor = Depends(get_current_actor),
    use_case: CreateOrderUseCase = Depends(get_create_order_use_case)
):
    """Place an order for an approved product"""
    try:
        dto = CreateOrderDTO(
            product_id=request.product_id,
            quantity=request.quantity,
            shipping_address=request.shipping_address
        )
        order = await use_case(actor, dto)
        return OrderResponse.from_domain(order)
    except (DomainError, InfrastructureError) as e:
        raise to_http_error(e)


@router.post(
    "/orders/checkout",
    response_model=List[OrderResponse],
    responses=ERROR_RESPONSES,
    status_code=status.HTTP_201_CREATED
)
async def checkout(
    request: CheckoutRequest,
    actor: Actor = Depends(get_current_actor),
    use_case: CheckoutUseCase = Depends(get_checkout_use_case)
):
    """Place one order per item, all or nothing"""
    try:
        dto = CheckoutDTO(lines=[
            CreateOrderDTO(
                product_id=item.product_id,
                quantity=item.quantity,
                shipping_address=item.shipping_address
            )
            for item in request.items
        ])
        orders = await use_case(actor, dto)
        return [OrderResponse.from_domain(order) for order in orders]
    except (DomainError, InfrastructureError) as e:
        raise to_http_error(e)


@router.get(
    "/orders",
    response_model=List[OrderResponse],
    responses=ERROR_RESPONSES
)
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(default=None, alias="status"),
    seller_id: Optional[str] = None,
    buyer_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    actor: Actor = Depends(get_current_actor),
    use_case: ListOrdersUseCase = Depends(get_list_orders_use_case)
):
    """Orders visible to the caller, narrowed by the optional filters"""
    try:
        filters = OrderFilters(
            status=status_filter,
            seller_id=seller_id,
            buyer_id=buyer_id,
            limit=limit,
            offset=offset
        )
        orders = await use_case(actor, filters)
        return [OrderResponse.from_domain(order) for order in orders]
    except (DomainError, InfrastructureError) as e:
        raise to_http_error(e)


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES
)
async def get_order(
    order_id: str,
    actor: Actor = Depends(get_current_actor),
    use_case: GetOrderUseCase = Depends(get_get_order_use_case)
):
    """Get an order by ID, if the caller may see it"""
    try:
        order = await use_case(actor, order_id)
        return OrderResponse.from_domain(order)
    except (DomainError, InfrastructureError) as e:
        raise to_http_error(e)


@router.patch(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES
)
async def transition_status(
    order_id: str,
    request: TransitionStatusRequest,
    actor: Actor = Depends(get_current_actor),
    use_case: TransitionOrderStatusUseCase = Depends(get_transition_use_case)
):
    """Move an order along the workflow"""
    try:
        dto = TransitionStatusDTO(
            order_id=order_id,
            status=request.status,
            fulfillment_details=request.fulfillment_details,
            reason=request.reason
        )
        order = await use_case(actor, dto)
        return OrderResponse.from_domain(order)
    except (DomainError, InfrastructureError) as e:
        raise to_http_error(e)


@router.post(
    "/orders/{order_id}/approval",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES
)
async def approve_reject(
    order_id: str,
    request: ApproveRejectRequest,
    actor: Actor = Depends(get_current_actor),
    use_case: ApproveRejectOrderUseCase = Depends(get_approve_reject_use_case)
):
    """Approve or reject a pending order (admin / sub-admin)"""
    try:
        dto = ApproveRejectDTO(order_id=order_id, status=request.status, reason=request.reason)
        order = await use_case(actor, dto)
        return OrderResponse.from_domain(order)
    except (DomainError, InfrastructureError) as e:
        raise to_http_error(e)


@router.post(
    "/orders/{order_id}/confirm",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES
)
async def confirm_order(
    order_id: str,
    request: ConfirmOrderRequest,
    actor: Actor = Depends(get_current_actor),
    use_case: ConfirmOrderUseCase = Depends(get_confirm_use_case)
):
    """Seller confirms an approved order with fulfillment details"""
    try:
        dto = ConfirmOrderDTO(order_id=order_id, fulfillment_details=request.fulfillment_details)
        order = await use_case(actor, dto)
        return OrderResponse.from_domain(order)
    except (DomainError, InfrastructureError) as e:
        raise to_http_error(e)


@router.post(
    "/orders/{order_id}/cancel",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES
)
async def cancel_order(
    order_id: str,
    request: Optional[CancelOrderRequest] = None,
    actor: Actor = Depends(get_current_actor),
    use_case: CancelOrderUseCase = Depends(get_cancel_use_case)
):
    """Cancel an order (buyer before dispatch, admin at any time)"""
    try:
        dto = CancelOrderDTO(order_id=order_id, reason=request.reason if request else None)
        order = await use_case(actor, dto)
        return OrderResponse.from_domain(order)
    except (DomainError, InfrastructureError) as e:
        raise to_http_error(e)
