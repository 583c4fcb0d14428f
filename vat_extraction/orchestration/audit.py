import time
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ProcessingStep:
    """One audit entry of a pipeline run."""

    step: str
    success: bool
    duration_ms: int
    details: str
    fallback_used: bool = False

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        return {
            "step": data["step"],
            "success": data["success"],
            "duration": data["duration_ms"],
            "details": data["details"],
            "fallbackUsed": data["fallback_used"],
        }


class AuditTrail:
    """Ordered processing steps for a single run; owned by the caller afterwards."""

    def __init__(self) -> None:
        self._steps: list[ProcessingStep] = []

    def record(
        self,
        step: str,
        *,
        success: bool,
        details: str,
        started_at: float | None = None,
        fallback_used: bool = False,
    ) -> ProcessingStep:
        duration_ms = 0
        if started_at is not None:
            duration_ms = int((time.monotonic() - started_at) * 1000)
        entry = ProcessingStep(
            step=step,
            success=success,
            duration_ms=duration_ms,
            details=details,
            fallback_used=fallback_used,
        )
        self._steps.append(entry)
        return entry

    @property
    def steps(self) -> list[ProcessingStep]:
        return list(self._steps)

    def __len__(self) -> int:
        return len(self._steps)
