from fastapi import APIRouter, Depends
from typing import List

from fintrack.models.mirror_config import MirrorConfigUpsert, MirrorConfigResponse
from fintrack.routers.dependencies import get_ledger
from fintrack.services.ledger import Ledger

router = APIRouter(
    prefix="/mirror-config",
    tags=["mirror-config"],
)

@router.get("/", response_model=List[MirrorConfigResponse])
def read_mirror_config(ledger: Ledger = Depends(get_ledger)):
    return ledger.list_mirror_config()

@router.put("/", response_model=MirrorConfigResponse)
def upsert_mirror_config(config: MirrorConfigUpsert, ledger: Ledger = Depends(get_ledger)):
    """
    Point a mirror target at a sheet and range. Takes effect on the next mirrored event.
    """
    return ledger.set_mirror_config(config)
