"""
Tables router.
Floor map with each table's active order, and manual status changes
(reserving a table or putting it back to FREE).
"""

from typing import Any

from fastapi import APIRouter, Depends, Request

from shared.config.constants import FLOOR_ROLES
from shared.security.auth import current_user_context, require_roles
from shared.security.rate_limit import WRITE_LIMIT, limiter
from shared.utils.schemas import TableDetailOutput, TableOutput, TableStatusRequest
from rest_api.routers._common import actor_from_context, get_settlement_service
from rest_api.services.domain import SettlementService


router = APIRouter(prefix="/api/tables", tags=["tables"])


@router.get("", response_model=list[TableOutput])
def list_tables(
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> list[TableOutput]:
    """All tables ordered by number. Served from the read cache when warm."""
    return [TableOutput.from_listing(row) for row in service.list_tables()]


@router.get("/{table_id}", response_model=TableDetailOutput)
def get_table(
    table_id: int,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableDetailOutput:
    """One table with its active order (items and payments), if any."""
    table, order = service.get_table(table_id)
    return TableDetailOutput.from_model(table, order)


@router.put("/{table_id}/status", response_model=TableOutput)
@limiter.limit(WRITE_LIMIT)
def set_table_status(
    request: Request,
    table_id: int,
    body: TableStatusRequest,
    service: SettlementService = Depends(get_settlement_service),
    ctx: dict[str, Any] = Depends(current_user_context),
) -> TableOutput:
    require_roles(ctx, FLOOR_ROLES)
    table = service.set_table_status(table_id, body.status, actor=actor_from_context(ctx))
    return TableOutput(
        id=table.id,
        number=table.number,
        capacity=table.capacity,
        area=table.area.name if table.area else None,
        status=table.status,
    )
