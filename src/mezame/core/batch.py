"""Batch wake: fan a request out over registered devices."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from mezame.core.device import Device
from mezame.core.registry import DeviceRegistry
from mezame.core.wol import WakeResult, wake

logger = logging.getLogger(__name__)


@dataclass
class WakeMultipleResponse:
    """Per-device results plus counts derived from them."""

    results: list[WakeResult] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful

    @property
    def summary(self) -> dict[str, int]:
        return {"total": self.total, "successful": self.successful, "failed": self.failed}

    def to_dict(self, include_not_found: bool = False) -> dict[str, Any]:
        d: dict[str, Any] = {
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary,
        }
        if include_not_found:
            d["notFound"] = list(self.not_found)
        return d


class BatchWaker:
    """
    Wakes registered devices one at a time or in bulk.

    With ``max_workers`` > 1 sends are issued from a thread pool; results
    always come back in request (or registry) order.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        broadcast: Optional[str] = None,
        port: Optional[int] = None,
        max_workers: int = 1,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.registry = registry
        self.broadcast = broadcast
        self.port = port
        self.max_workers = max_workers

    def _wake_device(self, device: Device) -> WakeResult:
        return wake(
            device.mac,
            broadcast=device.broadcast or self.broadcast,
            port=self.port,
            device=device.name,
        )

    def _dispatch(self, devices: list[Device]) -> list[WakeResult]:
        if self.max_workers == 1 or len(devices) <= 1:
            return [self._wake_device(d) for d in devices]
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(devices))) as pool:
            return list(pool.map(self._wake_device, devices))

    def wake_one(self, name: str) -> WakeResult:
        """Wake a single registered device; raises NotFound if absent."""
        return self._wake_device(self.registry.get(name))

    def wake_all(self) -> WakeMultipleResponse:
        """Wake every registered device, in registry order."""
        response = WakeMultipleResponse(results=self._dispatch(self.registry.list()))
        logger.info(
            "Wake-all: %d sent, %d failed", response.successful, response.failed
        )
        return response

    def wake_multiple(self, names: Iterable[str]) -> WakeMultipleResponse:
        """
        Wake the named devices, in the order given.

        Names that are not registered are collected in ``not_found`` and do
        not count towards the summary.
        """
        snapshot = {d.name: d for d in self.registry.list()}
        found: list[Device] = []
        missing: list[str] = []
        for name in names:
            if name in snapshot:
                found.append(snapshot[name])
            else:
                missing.append(name)
        if missing:
            logger.warning("Wake-multiple: unknown device(s) %s", ", ".join(missing))
        response = WakeMultipleResponse(results=self._dispatch(found), not_found=missing)
        logger.info(
            "Wake-multiple: %d sent, %d failed", response.successful, response.failed
        )
        return response
