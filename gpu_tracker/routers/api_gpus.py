from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, Depends

from ..core.errors import StoreIOError
from ..crud.gpus import create_gpu, list_gpus, load_database, update_gpu_status
from ..db.store import GpuStore, get_store
from ..schemas.gpu import GpuCreate, GpuCreated, GpuStatusUpdate

router = APIRouter(prefix="/api", tags=["gpus"])

READ_FAILED = "Failed to read GPU database"
ADD_FAILED = "Failed to add GPU"
UPDATE_FAILED = "Failed to update GPU status"


@contextmanager
def store_failures_as(error: str) -> Iterator[None]:
    """Relabel store I/O errors with the operation that was attempted."""
    try:
        yield
    except StoreIOError as exc:
        exc.error = error
        raise


# Stored records go out without a response_model so clients see them exactly
# as they sit in the document.
@router.get("/gpu-database")
def api_gpu_database(store: GpuStore = Depends(get_store)):
    with store_failures_as(READ_FAILED):
        return load_database(store)


@router.get("/gpus")
def api_list_gpus(store: GpuStore = Depends(get_store)):
    with store_failures_as(READ_FAILED):
        return list_gpus(store)


@router.post("/gpus", response_model=GpuCreated, response_model_exclude_unset=True, status_code=201)
def api_create_gpu(payload: Optional[GpuCreate] = None, store: GpuStore = Depends(get_store)):
    data = payload.model_dump(exclude_none=True) if payload else {}
    with store_failures_as(ADD_FAILED):
        gpu = create_gpu(store, data)
    return {"message": "GPU added successfully", "id": gpu["id"], "gpu": gpu}


@router.patch("/gpus/{gpu_id}")
def api_update_gpu_status(
    gpu_id: str,
    payload: Optional[GpuStatusUpdate] = None,
    store: GpuStore = Depends(get_store),
):
    status = payload.status if payload else None
    with store_failures_as(UPDATE_FAILED):
        gpu = update_gpu_status(store, gpu_id, status)
    return {"message": "GPU status updated successfully", "gpu": gpu}
