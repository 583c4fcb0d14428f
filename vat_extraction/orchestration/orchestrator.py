"""Degradation orchestrator.

Drives one document through the state machine

    PENDING -> PRIMARY_ATTEMPT -> SUCCESS | DEGRADE
    DEGRADE -> FALLBACK_ATTEMPT -> SUCCESS_DEGRADED | MINIMAL_RESPONSE

Every terminal state carries an ExtractionResult. Adapter calls run in worker
threads bounded by the remaining per-document budget; a timed-out call is
abandoned, not awaited. Caller cancellation propagates untouched.
"""

import asyncio
import time
from dataclasses import dataclass, field

from vat_extraction.documents.models import Document
from vat_extraction.extractors.base import BaseExtractor
from vat_extraction.extractors.exceptions import (
    ExtractionTimeoutError,
    LowConfidenceExtraction,
    MalformedDocumentError,
    ServiceUnavailableError,
    UnsupportedFormatError,
)
from vat_extraction.extractors.factory import ExtractorRegistry
from vat_extraction.extractors.models import CapabilityKind, RawExtraction
from vat_extraction.health.monitor import HealthMonitor
from vat_extraction.logging.logger import Log
from vat_extraction.orchestration.audit import AuditTrail, ProcessingStep
from vat_extraction.orchestration.fallback import FallbackExtractor
from vat_extraction.orchestration.states import ALLOWED_TRANSITIONS, PipelineState
from vat_extraction.scoring.confidence import REVIEW_THRESHOLD
from vat_extraction.scoring.models import (
    ErrorRecovery,
    ExtractionResult,
    ProcessingMethod,
    ValidationFlag,
)
from vat_extraction.scoring.validation import build_result, minimal_result

PRIMARY_METHODS: dict[CapabilityKind, ProcessingMethod] = {
    CapabilityKind.AI: ProcessingMethod.PRIMARY_AI,
    CapabilityKind.OCR: ProcessingMethod.PRIMARY_OCR,
    CapabilityKind.TABULAR: ProcessingMethod.PRIMARY_TABULAR,
    CapabilityKind.TEXT: ProcessingMethod.PRIMARY_TEXT,
}

# Only these capabilities produce document text worth re-scanning in fallback.
_TEXT_SALVAGE_KINDS = frozenset({CapabilityKind.OCR, CapabilityKind.TEXT})


@dataclass(frozen=True)
class ProcessingOutcome:
    """Result of one pipeline run plus its audit trail."""

    result: ExtractionResult
    steps: list[ProcessingStep]
    final_state: PipelineState


@dataclass
class _Run:
    document: Document
    deadline: float
    trail: AuditTrail = field(default_factory=AuditTrail)
    state: PipelineState = PipelineState.PENDING
    errors: list[str] = field(default_factory=list)
    salvaged_text: str = ""
    failed_kinds: set[CapabilityKind] = field(default_factory=set)


@dataclass(frozen=True)
class _AttemptOutcome:
    result: ExtractionResult | None = None
    reason: str = ""
    stop_chain: bool = False


class DegradationOrchestrator:
    """Selects primary extractors, retries them and degrades to the fallback."""

    def __init__(
        self,
        registry: ExtractorRegistry,
        health_monitor: HealthMonitor,
        *,
        budget_seconds: float = 60.0,
        adapter_timeout_seconds: float = 60.0,
        max_attempts: int = 3,
        retry_backoff_seconds: float = 1.0,
        fallback: FallbackExtractor | None = None,
    ) -> None:
        self._registry = registry
        self._health = health_monitor
        self._budget = budget_seconds
        self._adapter_timeout = adapter_timeout_seconds
        self._max_attempts = max_attempts
        self._backoff = retry_backoff_seconds
        self._fallback = fallback or FallbackExtractor()

    async def run(self, document: Document) -> ProcessingOutcome:
        """Process one document. Never raises except on caller cancellation."""
        loop = asyncio.get_running_loop()
        run = _Run(document=document, deadline=loop.time() + self._budget)
        run.trail.record(
            PipelineState.PENDING.value,
            success=True,
            details=(
                f"Received {document.filename} ({document.normalized_mime_type}, "
                f"{len(document.content)} bytes, {document.category.value})"
            ),
        )
        Log.info(f"Processing {document.filename}", category=document.category.value)

        result, reason = await self._run_primary(run)
        if result is not None:
            self._transition(run, PipelineState.SUCCESS, success=True, details=(
                f"{result.processing_method.value} accepted with confidence "
                f"{result.confidence:.2f}"
            ))
            return self._finish(run, result)

        self._transition(run, PipelineState.DEGRADE, success=False, details=reason)
        Log.warning(f"Degrading {document.filename}: {reason}")
        return self._finish(run, self._run_fallback(run))

    async def _run_primary(self, run: _Run) -> tuple[ExtractionResult | None, str]:
        try:
            chain = self._registry.primary_chain(run.document)
        except UnsupportedFormatError as exc:
            run.errors.append(str(exc))
            return None, f"Unsupported format: {exc}"

        healthy: list[BaseExtractor] = []
        for extractor in chain:
            started_at = time.monotonic()
            if await self._health.is_healthy(extractor.kind):
                healthy.append(extractor)
                continue
            message = f"{extractor.kind.value} capability unhealthy, skipped"
            run.failed_kinds.add(extractor.kind)
            run.errors.append(message)
            run.trail.record(
                f"HEALTH_CHECK:{extractor.kind.value}",
                success=False,
                details=message,
                started_at=started_at,
            )
        if not healthy:
            return None, "No healthy primary capability available"

        self._transition(
            run,
            PipelineState.PRIMARY_ATTEMPT,
            success=True,
            details="Primary chain: " + ", ".join(e.kind.value for e in healthy),
        )
        reasons = []
        for extractor in healthy:
            outcome = await self._attempt_with_retries(run, extractor)
            if outcome.result is not None:
                return outcome.result, ""
            reasons.append(outcome.reason)
            if outcome.stop_chain:
                break
        return None, "; ".join(reasons)

    async def _attempt_with_retries(self, run: _Run, extractor: BaseExtractor) -> _AttemptOutcome:
        kind = extractor.kind
        last_error = ""
        for attempt in range(1, self._max_attempts + 1):
            remaining = self._remaining(run)
            if remaining <= 0:
                return _AttemptOutcome(reason="Processing budget exhausted", stop_chain=True)
            step = f"PRIMARY_ATTEMPT:{kind.value}#{attempt}"
            started_at = time.monotonic()
            try:
                raw = await asyncio.wait_for(
                    asyncio.to_thread(extractor.extract, run.document),
                    timeout=min(self._adapter_timeout, remaining),
                )
            except asyncio.TimeoutError:
                error = ExtractionTimeoutError(
                    f"{kind.value} timed out after {min(self._adapter_timeout, remaining):.1f}s"
                )
                last_error = self._attempt_failed(run, kind, step, str(error), started_at)
            except ServiceUnavailableError as exc:
                last_error = self._attempt_failed(run, kind, step, str(exc), started_at)
            except (MalformedDocumentError, UnsupportedFormatError) as exc:
                message = f"{type(exc).__name__}: {exc}"
                run.errors.append(message)
                run.trail.record(step, success=False, details=message, started_at=started_at)
                return _AttemptOutcome(reason=message, stop_chain=True)
            except Exception as exc:
                Log.exception(f"Unexpected error in {kind.value} extractor")
                last_error = self._attempt_failed(
                    run, kind, step, f"unexpected {type(exc).__name__}: {exc}", started_at
                )
            else:
                self._health.record_success(kind)
                try:
                    result = self._accept(run, kind, raw)
                except LowConfidenceExtraction as exc:
                    if kind in _TEXT_SALVAGE_KINDS and raw.text and not run.salvaged_text:
                        run.salvaged_text = raw.text
                    message = f"LowConfidenceExtraction: {exc}"
                    run.errors.append(message)
                    run.failed_kinds.add(kind)
                    run.trail.record(step, success=False, details=message, started_at=started_at)
                    return _AttemptOutcome(reason=message)
                except Exception as exc:
                    Log.exception(f"Could not score {kind.value} extraction")
                    message = self._attempt_failed(
                        run, kind, step, f"unexpected {type(exc).__name__}: {exc}", started_at
                    )
                    return _AttemptOutcome(reason=message)
                run.trail.record(
                    step,
                    success=True,
                    details=f"{len(raw.candidates)} candidate(s), confidence {result.confidence:.2f}",
                    started_at=started_at,
                )
                return _AttemptOutcome(result=result)

            if attempt < self._max_attempts:
                await self._sleep_backoff(run, attempt)
        return _AttemptOutcome(
            reason=f"{kind.value} failed after {self._max_attempts} attempt(s): {last_error}"
        )

    def _accept(self, run: _Run, kind: CapabilityKind, raw: RawExtraction) -> ExtractionResult:
        """Score a primary extraction.

        Raises:
            LowConfidenceExtraction: if the result scores below the review
                threshold. Retrying would not change the score.
        """
        method = PRIMARY_METHODS[kind]
        result = build_result(raw, run.document, method, self._primary_recovery(run, kind, method))
        if result.confidence < REVIEW_THRESHOLD:
            raise LowConfidenceExtraction(
                f"{kind.value} scored {result.confidence:.2f} (< {REVIEW_THRESHOLD})"
            )
        return result

    def _attempt_failed(
        self,
        run: _Run,
        kind: CapabilityKind,
        step: str,
        message: str,
        started_at: float,
    ) -> str:
        self._health.record_failure(kind)
        run.errors.append(message)
        run.failed_kinds.add(kind)
        run.trail.record(step, success=False, details=message, started_at=started_at)
        Log.warning(f"{step} failed: {message}")
        return message

    def _run_fallback(self, run: _Run) -> ExtractionResult:
        self._transition(
            run,
            PipelineState.FALLBACK_ATTEMPT,
            success=True,
            details="Running basic pattern matching",
            fallback_used=True,
        )
        started_at = time.monotonic()
        try:
            raw, source = self._fallback.extract(run.document, run.salvaged_text)
            recovery = ErrorRecovery(
                had_errors=True,
                recovery_method="BASIC_PATTERN_MATCHING",
                fallbacks_used=(source, "SIMPLE_VAT_PATTERNS"),
            )
            result = build_result(
                raw, run.document, ProcessingMethod.FALLBACK, recovery, fallback=True
            )
        except Exception:
            Log.exception(f"Fallback extraction failed for {run.document.filename}")
            source = "FALLBACK_ERROR"
            result = None

        if result is None or ValidationFlag.NO_VAT_AMOUNTS_FOUND.value in result.validation_flags:
            self._transition(
                run,
                PipelineState.MINIMAL_RESPONSE,
                success=False,
                details=f"No VAT amounts recovered ({source}); manual review required",
                started_at=started_at,
                fallback_used=True,
            )
            # a fallback result without amounts still carries any total, rate or text it found
            return result if result is not None else minimal_result(run.document, (source,))

        self._transition(
            run,
            PipelineState.SUCCESS_DEGRADED,
            success=True,
            details=(
                f"Fallback recovered {len(result.sales_vat) or len(result.purchase_vat)} "
                f"amount(s) from {source}, confidence {result.confidence:.2f}"
            ),
            started_at=started_at,
            fallback_used=True,
        )
        return result

    def _transition(
        self,
        run: _Run,
        new_state: PipelineState,
        *,
        success: bool,
        details: str,
        started_at: float | None = None,
        fallback_used: bool = False,
    ) -> None:
        if new_state not in ALLOWED_TRANSITIONS.get(run.state, frozenset()):
            raise RuntimeError(f"Illegal transition {run.state.value} -> {new_state.value}")
        run.trail.record(
            new_state.value,
            success=success,
            details=details,
            started_at=started_at,
            fallback_used=fallback_used,
        )
        run.state = new_state

    @staticmethod
    def _primary_recovery(
        run: _Run, kind: CapabilityKind, method: ProcessingMethod
    ) -> ErrorRecovery:
        if not run.errors:
            return ErrorRecovery()
        if run.failed_kinds == {kind}:
            return ErrorRecovery(had_errors=True, recovery_method="RETRY")
        return ErrorRecovery(
            had_errors=True,
            recovery_method="ALTERNATE_PRIMARY",
            fallbacks_used=(method.value,),
        )

    def _remaining(self, run: _Run) -> float:
        return run.deadline - asyncio.get_running_loop().time()

    async def _sleep_backoff(self, run: _Run, attempt: int) -> None:
        delay = min(self._backoff * 2 ** (attempt - 1), max(0.0, self._remaining(run)))
        if delay > 0:
            await asyncio.sleep(delay)

    @staticmethod
    def _finish(run: _Run, result: ExtractionResult) -> ProcessingOutcome:
        Log.info(
            f"Finished {run.document.filename}",
            state=run.state.value,
            method=result.processing_method.value,
            confidence=f"{result.confidence:.2f}",
            flags=list(result.validation_flags),
        )
        return ProcessingOutcome(result=result, steps=run.trail.steps, final_state=run.state)
