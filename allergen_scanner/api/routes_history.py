from __future__ import annotations

import time
import uuid

from fastapi import APIRouter

from allergen_scanner.api.schemas_scan import ScanRecord, ScanRecordRequest

router = APIRouter(prefix="/api/history", tags=["history"])


@router.post("/record", response_model=ScanRecord)
def make_scan_record(req: ScanRecordRequest):
    """
    Wrap a scan response into the record shape the client appends to its
    history. Nothing is stored server-side.
    """
    return ScanRecord(
        **req.model_dump(),
        id=str(uuid.uuid4()),
        timestamp=int(time.time() * 1000),
    )
