"""Reconciliation API: pair transfers across exchanges and flag gaps."""

from typing import Annotated

from fastapi import APIRouter, Depends

from btctax.accounting.reconciliation import reconcile_transfers
from btctax.api.deps import get_settings
from btctax.api.schemas.reconciliation import ReconcileRequest
from btctax.config import Settings
from btctax.domain.models.reconciliation import ReconciliationResult

router = APIRouter(prefix="/api/reconciliation", tags=["reconciliation"])

SettingsDep = Annotated[Settings, Depends(get_settings)]


@router.post("", response_model=ReconciliationResult)
async def reconcile(body: ReconcileRequest, settings: SettingsDep) -> ReconciliationResult:
    return reconcile_transfers(
        body.transactions,
        tolerance=settings.transfer_tolerance_btc,
        max_days=settings.transfer_window_days,
    )
