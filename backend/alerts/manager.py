from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from alerts.backend import AlertBackend
from alerts.types import AlertRegion, AlertSubscription, AlertType, ProximitySpec
from regions.types import MIN_REGION_VERTICES
from search.types import SearchFilters

logger = logging.getLogger(__name__)


class AlertPermissionError(PermissionError):
    """No authenticated user; alerts are always per-user."""


class AlertSpecError(ValueError):
    """The alert's type does not match the area it was given (or the area is invalid)."""


class AlertManager:
    """
    Create / list / toggle / delete alert subscriptions for one user.
    """

    def __init__(self, backend: AlertBackend, *, user_id: str | None) -> None:
        self._backend = backend
        self._user_id = (user_id or "").strip() or None

    def _require_user(self) -> str:
        if self._user_id is None:
            raise AlertPermissionError("Please sign in to manage alerts")
        return self._user_id

    async def create(
        self,
        alert_type: AlertType | str,
        filters: SearchFilters | None = None,
        *,
        proximity: ProximitySpec | None = None,
        region: AlertRegion | None = None,
    ) -> AlertSubscription:
        user_id = self._require_user()
        try:
            alert_type = AlertType(alert_type)
        except ValueError as e:
            raise AlertSpecError(f"Unknown alert type: {alert_type!r}") from e

        if (proximity is None) == (region is None):
            raise AlertSpecError("Give exactly one of a proximity spec or a region")
        if alert_type == AlertType.proximity:
            if proximity is None:
                raise AlertSpecError("A proximity alert needs a center and a radius")
            if proximity.radius_km <= 0:
                raise AlertSpecError(f"Radius must be positive: {proximity.radius_km}")
        else:
            if region is None:
                raise AlertSpecError("A region alert needs a region")
            if len(region.coordinates) < MIN_REGION_VERTICES:
                raise AlertSpecError(
                    f"A region alert needs at least {MIN_REGION_VERTICES} points"
                )
            region = AlertRegion(
                name=(region.name or "").strip() or "Custom area",
                coordinates=tuple(region.coordinates),
            )

        alert = AlertSubscription(
            id=uuid.uuid4().hex,
            alert_type=alert_type,
            filters=filters or SearchFilters(),
            proximity=proximity,
            region=region,
            is_active=True,
            created_at=datetime.now(timezone.utc),
        )
        await self._backend.create(user_id, alert)
        logger.info("Created %s alert %s for %s", alert_type.value, alert.id, user_id)
        return alert

    async def list(self) -> list[AlertSubscription]:
        return await self._backend.list(self._require_user())

    async def toggle(self, alert_id: str, is_active: bool) -> AlertSubscription:
        user_id = self._require_user()
        if not await self._backend.set_active(user_id, alert_id, is_active):
            raise KeyError(alert_id)
        alert = await self._backend.get(user_id, alert_id)
        if alert is None:
            raise KeyError(alert_id)
        return alert

    async def delete(self, alert_id: str) -> None:
        user_id = self._require_user()
        if not await self._backend.delete(user_id, alert_id):
            raise KeyError(alert_id)
        logger.info("Deleted alert %s for %s", alert_id, user_id)
