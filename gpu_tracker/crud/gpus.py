# gpu_tracker/crud/gpus.py
from __future__ import annotations

import logging
from typing import Any, Mapping

from ..core.errors import NotFoundError, ValidationError
from ..core.statuses import DEFAULT_STATUS, STATUS_CHOICES, is_valid_status
from ..db.store import COLLECTION_KEY, ROOT_KEY, GpuStore

logger = logging.getLogger("gpu_tracker.gpus")

REQUIRED_FIELDS = ("vendor", "name", "generation", "serial_number", "owner")


def load_database(store: GpuStore) -> dict[str, Any]:
    """
    Return the whole persisted document.
    """
    return store.load()


def list_gpus(store: GpuStore) -> list[dict[str, Any]]:
    """
    Return every GPU record in insertion order.
    """
    return _gpus(store.load())


def create_gpu(store: GpuStore, payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate ``payload``, assign the next id and persist the new record.
    Nothing is written unless every check passes.
    """
    missing = missing_required_fields(payload)
    if missing:
        raise ValidationError("Missing required fields", missing=missing)

    document = store.load()
    gpus = _gpus(document)

    existing = find_gpu_by_serial(gpus, payload["serial_number"])
    if existing is not None:
        raise ValidationError(
            "A GPU with this serial number already exists",
            existing_gpu=existing,
        )

    status = payload.get("status") or DEFAULT_STATUS
    if not is_valid_status(status):
        raise ValidationError("Invalid status", validStatuses=list(STATUS_CHOICES))

    gpu: dict[str, Any] = {
        "id": next_gpu_id(gpus),
        "vendor": payload["vendor"],
        "name": payload["name"],
        "generation": payload["generation"],
        "serial_number": payload["serial_number"],
        "owner": payload["owner"],
        "borrowee": payload.get("borrowee") or None,
        "status": status,
        "additional_info": build_additional_info(payload),
    }

    gpus.append(gpu)
    store.save(document)
    logger.info(
        "gpu.created",
        extra={"extra_data": {"gpu_id": gpu["id"], "serial_number": gpu["serial_number"]}},
    )
    return gpu


def update_gpu_status(store: GpuStore, gpu_id: int | str, status: Any) -> dict[str, Any]:
    """
    Overwrite the status of one record in place. No other field changes.
    """
    if not status:
        raise ValidationError("Status is required")
    if not is_valid_status(status):
        raise ValidationError("Invalid status", validStatuses=list(STATUS_CHOICES))

    target_id = parse_gpu_id(gpu_id)
    document = store.load()
    gpu = find_gpu(_gpus(document), target_id) if target_id is not None else None
    if gpu is None:
        raise NotFoundError("GPU not found")

    previous = gpu.get("status")
    gpu["status"] = status
    store.save(document)
    logger.info(
        "gpu.status_updated",
        extra={"extra_data": {"gpu_id": gpu["id"], "from": previous, "to": status}},
    )
    return gpu


def missing_required_fields(payload: Mapping[str, Any]) -> list[str]:
    # None and "" both count as missing
    return [field for field in REQUIRED_FIELDS if not payload.get(field)]


def find_gpu(gpus: list[dict[str, Any]], gpu_id: int) -> dict[str, Any] | None:
    for gpu in gpus:
        if gpu.get("id") == gpu_id:
            return gpu
    return None


def find_gpu_by_serial(gpus: list[dict[str, Any]], serial_number: Any) -> dict[str, Any] | None:
    for gpu in gpus:
        if gpu.get("serial_number") == serial_number:
            return gpu
    return None


def next_gpu_id(gpus: list[dict[str, Any]]) -> int:
    return max((gpu["id"] for gpu in gpus), default=0) + 1


def parse_gpu_id(value: int | str) -> int | None:
    """Return ``value`` as an int, or None when it is not a plain integer."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text.lstrip("-").isdigit():
        return None
    return int(text)


def build_additional_info(payload: Mapping[str, Any]) -> dict[str, Any]:
    info: dict[str, Any] = {}
    if payload.get("memory"):
        info["memory"] = payload["memory"]
    release_year = payload.get("release_year")
    if release_year not in (None, ""):
        info["release_year"] = _coerce_year(release_year)
    if payload.get("purchase_date"):
        info["purchase_date"] = payload["purchase_date"]
    return info


def _coerce_year(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Invalid release_year", value=value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ValidationError("Invalid release_year", value=value) from exc


def _gpus(document: dict[str, Any]) -> list[dict[str, Any]]:
    return document[ROOT_KEY][COLLECTION_KEY]
