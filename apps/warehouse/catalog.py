"""Driver and vehicle master data used to fill delivery-note transport info."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from django.db import transaction

from .exceptions import WorkflowNotFoundError
from .models import DispatchDriver, DispatchVehicle
from .serializers import DispatchDriverSerializer, DispatchVehicleSerializer, run_validation

logger = logging.getLogger(__name__)


def get_catalog(*, include_inactive: bool = False) -> Dict[str, List[Dict[str, Any]]]:
    drivers = DispatchDriver.objects.all()
    vehicles = DispatchVehicle.objects.all()
    if not include_inactive:
        drivers = drivers.filter(is_active=True)
        vehicles = vehicles.filter(is_active=True)
    return {
        "drivers": DispatchDriverSerializer(drivers, many=True).data,
        "vehicles": DispatchVehicleSerializer(vehicles, many=True).data,
    }


def create_driver(data: Dict[str, Any]) -> Dict[str, Any]:
    serializer = run_validation(DispatchDriverSerializer(data=data or {}))
    driver = serializer.save()
    logger.info("[WAREHOUSE] Driver %s created", driver.id)
    return serializer.data


def update_driver(driver_id, data: Dict[str, Any]) -> Dict[str, Any]:
    with transaction.atomic():
        driver = _get_or_404(DispatchDriver, driver_id, "Şoför bulunamadı.", "driver_not_found")
        serializer = run_validation(DispatchDriverSerializer(driver, data=data or {}, partial=True))
        serializer.save()
    return serializer.data


def delete_driver(driver_id) -> None:
    driver = _get_or_404(DispatchDriver, driver_id, "Şoför bulunamadı.", "driver_not_found")
    driver.delete()
    logger.info("[WAREHOUSE] Driver %s deleted", driver_id)


def create_vehicle(data: Dict[str, Any]) -> Dict[str, Any]:
    serializer = run_validation(DispatchVehicleSerializer(data=data or {}))
    vehicle = serializer.save()
    logger.info("[WAREHOUSE] Vehicle %s (%s) created", vehicle.id, vehicle.plate)
    return serializer.data


def update_vehicle(vehicle_id, data: Dict[str, Any]) -> Dict[str, Any]:
    with transaction.atomic():
        vehicle = _get_or_404(DispatchVehicle, vehicle_id, "Araç bulunamadı.", "vehicle_not_found")
        serializer = run_validation(DispatchVehicleSerializer(vehicle, data=data or {}, partial=True))
        serializer.save()
    return serializer.data


def delete_vehicle(vehicle_id) -> None:
    vehicle = _get_or_404(DispatchVehicle, vehicle_id, "Araç bulunamadı.", "vehicle_not_found")
    vehicle.delete()
    logger.info("[WAREHOUSE] Vehicle %s deleted", vehicle_id)


def _get_or_404(model, pk, message: str, error_code: str):
    try:
        key: Optional[uuid.UUID] = uuid.UUID(str(pk))
    except (TypeError, ValueError):
        key = None
    instance = model.objects.filter(pk=key).first() if key else None
    if instance is None:
        raise WorkflowNotFoundError(message, error_code=error_code)
    return instance
