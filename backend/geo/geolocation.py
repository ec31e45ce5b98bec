from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol

from listings.types import Coordinate

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 15.0


class GeolocationErrorCode(IntEnum):
    # Numbering follows the browser Geolocation API.
    permission_denied = 1
    position_unavailable = 2
    timeout = 3
    unsupported = 98
    unknown = 99


class GeolocationError(Exception):
    def __init__(self, code: GeolocationErrorCode, message: str = "") -> None:
        super().__init__(message or code.name)
        self.code = code


class Locator(Protocol):
    """
    One-shot position source (browser, device GPS, IP lookup, ...).

    Raises `GeolocationError` on failure.
    """

    async def current_position(self) -> Coordinate: ...


_USER_MESSAGES: dict[GeolocationErrorCode, str] = {
    GeolocationErrorCode.permission_denied: (
        "Location access denied. Please allow location permissions and try again."
    ),
    GeolocationErrorCode.position_unavailable: (
        "Location unavailable. Please check your GPS/network connection and try again."
    ),
    GeolocationErrorCode.timeout: (
        "Location request timed out. Please try again or click on the map manually."
    ),
    GeolocationErrorCode.unsupported: (
        "Geolocation is not supported by your browser. "
        "Please click on the map to set your search center."
    ),
    GeolocationErrorCode.unknown: (
        "Location error occurred. Please try clicking on the map manually."
    ),
}


@dataclass(frozen=True)
class GeolocationOutcome:
    coordinate: Coordinate | None
    error: GeolocationErrorCode | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.coordinate is not None


def user_message(code: GeolocationErrorCode) -> str:
    return _USER_MESSAGES.get(code, _USER_MESSAGES[GeolocationErrorCode.unknown])


async def locate(
    locator: Locator | None, *, timeout_s: float = DEFAULT_TIMEOUT_S
) -> GeolocationOutcome:
    """
    Acquire the current position once.

    Always resolves to an outcome; failures carry a specific, actionable message.
    """
    if locator is None:
        code = GeolocationErrorCode.unsupported
        logger.warning("Geolocation is not supported by this client")
        return GeolocationOutcome(coordinate=None, error=code, message=user_message(code))

    try:
        coord = await asyncio.wait_for(locator.current_position(), timeout=timeout_s)
    except asyncio.TimeoutError:
        code = GeolocationErrorCode.timeout
        logger.warning("Location request timed out after %.0f seconds", timeout_s)
        return GeolocationOutcome(coordinate=None, error=code, message=user_message(code))
    except GeolocationError as e:
        code = e.code
        if code == GeolocationErrorCode.permission_denied:
            # Expected user behaviour, not an error.
            logger.info("Geolocation: location access denied by user")
        else:
            logger.warning("Geolocation failed: %s (code %s)", e, int(code))
        return GeolocationOutcome(coordinate=None, error=code, message=user_message(code))
    except ValueError as e:
        # Out-of-range coordinate from the locator.
        code = GeolocationErrorCode.position_unavailable
        logger.warning("Geolocation returned an invalid position: %s", e)
        return GeolocationOutcome(coordinate=None, error=code, message=user_message(code))

    return GeolocationOutcome(coordinate=coord, message="Location found! Map centered on your position.")
