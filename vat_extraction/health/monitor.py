"""Per-capability liveness cache consulted before primary attempts."""

import asyncio
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from vat_extraction.config.settings import Settings
from vat_extraction.extractors.base import BaseExtractor
from vat_extraction.extractors.models import CapabilityKind
from vat_extraction.health.circuit_breaker import CircuitBreaker, CircuitState
from vat_extraction.logging.logger import Log

Probe = Callable[[], bool]


@dataclass
class _CachedProbe:
    healthy: bool
    checked_at: float


@dataclass(frozen=True)
class CapabilityHealth:
    kind: CapabilityKind
    healthy: bool | None
    checked_at: float | None
    breaker_state: CircuitState

    def to_dict(self) -> dict[str, object]:
        return {
            "capability": self.kind.value,
            "healthy": self.healthy,
            "breakerState": self.breaker_state.value,
        }


class HealthMonitor:
    """TTL-cached liveness per capability, backed by probes and circuit breakers.

    Capabilities without a registered probe (plain text) are always healthy.
    Probe failures and timeouts resolve to False and are cached like any
    other result. Cache writes are last-writer-wins.
    """

    def __init__(
        self,
        probes: Mapping[CapabilityKind, Probe],
        *,
        ttl_seconds: float = 10.0,
        probe_timeout_seconds: float = 2.0,
        failure_threshold: int = 3,
        success_threshold: int = 1,
        reset_timeout_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._probes = dict(probes)
        self._ttl = ttl_seconds
        self._probe_timeout = probe_timeout_seconds
        self._clock = clock
        self._cache: dict[CapabilityKind, _CachedProbe] = {}
        self._breakers = {
            kind: CircuitBreaker(
                kind.value,
                failure_threshold=failure_threshold,
                success_threshold=success_threshold,
                reset_timeout_seconds=reset_timeout_seconds,
                clock=clock,
            )
            for kind in self._probes
        }

    @classmethod
    def for_extractors(
        cls,
        extractors: Mapping[CapabilityKind, BaseExtractor],
        settings: Settings,
    ) -> "HealthMonitor":
        probes = {
            kind: extractor.probe
            for kind, extractor in extractors.items()
            if kind is not CapabilityKind.TEXT
        }
        return cls(
            probes,
            ttl_seconds=settings.health_ttl_seconds,
            probe_timeout_seconds=settings.health_probe_timeout_seconds,
            failure_threshold=settings.breaker_failure_threshold,
            success_threshold=settings.breaker_success_threshold,
            reset_timeout_seconds=settings.breaker_reset_seconds,
        )

    async def is_healthy(self, kind: CapabilityKind) -> bool:
        probe = self._probes.get(kind)
        if probe is None:
            return True
        breaker = self._breakers[kind]
        if not breaker.allows_request():
            return False
        cached = self._cache.get(kind)
        if cached is not None and self._clock() - cached.checked_at < self._ttl:
            return cached.healthy
        healthy = await self._run_probe(kind, probe)
        self._cache[kind] = _CachedProbe(healthy=healthy, checked_at=self._clock())
        return healthy

    def record_success(self, kind: CapabilityKind) -> None:
        breaker = self._breakers.get(kind)
        if breaker is not None:
            breaker.record_success()

    def record_failure(self, kind: CapabilityKind) -> None:
        breaker = self._breakers.get(kind)
        if breaker is None:
            return
        breaker.record_failure()
        if breaker.state is CircuitState.OPEN:
            self._cache.pop(kind, None)

    def snapshot(self) -> list[CapabilityHealth]:
        result = []
        for kind in self._probes:
            cached = self._cache.get(kind)
            result.append(
                CapabilityHealth(
                    kind=kind,
                    healthy=cached.healthy if cached else None,
                    checked_at=cached.checked_at if cached else None,
                    breaker_state=self._breakers[kind].state,
                )
            )
        return result

    async def _run_probe(self, kind: CapabilityKind, probe: Probe) -> bool:
        try:
            healthy = await asyncio.wait_for(
                asyncio.to_thread(probe), timeout=self._probe_timeout
            )
        except asyncio.TimeoutError:
            Log.warning(f"Health probe for {kind.value} timed out after {self._probe_timeout}s")
            return False
        except Exception as exc:
            Log.warning(f"Health probe for {kind.value} failed: {exc}")
            return False
        Log.debug(f"Health probe for {kind.value}: {'up' if healthy else 'down'}")
        return bool(healthy)
