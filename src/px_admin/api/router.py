# src/px_admin/api/router.py
"""Admin REST API. Every route requires an admin Bearer token."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.px_admin.application.service import AdminService
from src.px_common.database import get_db_session
from src.px_common.enums import OrderStatus
from src.px_common.response import ApiResponse, success_response
from src.px_gateway.auth.dependencies import require_admin
from src.px_order.application.schemas import AttachProofRequest

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])
_service = AdminService()


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "req_unknown")


def _wrap(request: Request, data: dict, message: str = "success") -> ApiResponse:
    resp = success_response(data, message=message)
    resp.request_id = _get_request_id(request)
    return resp


@router.get("/stats", response_model=ApiResponse)
async def dashboard_stats(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.dashboard_stats(db)
    return _wrap(request, result.model_dump())


@router.get("/orders", response_model=ApiResponse)
async def list_orders(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: OrderStatus | None = Query(None, description="Filter by order status"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor"),
) -> ApiResponse:
    result = await _service.list_orders(db, status.value if status else None, cursor, limit)
    return _wrap(request, result.model_dump())


@router.get("/orders/{order_id}", response_model=ApiResponse)
async def get_order(
    request: Request,
    order_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_order(db, order_id)
    return _wrap(request, result.model_dump())


@router.post("/orders/{order_id}/mark-paid", response_model=ApiResponse)
async def mark_paid(
    request: Request,
    order_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.mark_paid(db, order_id)
    return _wrap(request, result.model_dump(), message="Order settled")


@router.post("/orders/{order_id}/cancel", response_model=ApiResponse)
async def cancel_order(
    request: Request,
    order_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.cancel_order(db, order_id)
    return _wrap(request, result.model_dump(), message="Order cancelled")


@router.post("/orders/{order_id}/proof", response_model=ApiResponse)
async def attach_proof(
    request: Request,
    order_id: str,
    body: AttachProofRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.attach_proof(db, order_id, body)
    return _wrap(request, result.model_dump())


@router.post("/sweep", response_model=ApiResponse)
async def sweep(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.sweep(db)
    return _wrap(request, result.model_dump())


@router.get("/invariants", response_model=ApiResponse)
async def invariants(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.check_invariants(db)
    return _wrap(request, result.model_dump())
