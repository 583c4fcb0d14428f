"""Reprocessing entrypoint: resolve a document, run the pipeline, keep the outcome."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from vat_extraction.config.settings import Settings
from vat_extraction.documents.models import Document
from vat_extraction.documents.source import DocumentSource, FileDocumentSource
from vat_extraction.extractors.factory import ExtractorRegistryFactory
from vat_extraction.health.monitor import HealthMonitor
from vat_extraction.logging.logger import Log
from vat_extraction.orchestration.audit import ProcessingStep
from vat_extraction.orchestration.orchestrator import DegradationOrchestrator, ProcessingOutcome
from vat_extraction.scoring.models import ExtractionResult


class ResultStore(ABC):
    """Keeps the latest processing outcome per document ref."""

    @abstractmethod
    def get(self, ref: str) -> ProcessingOutcome | None:
        """Return the stored outcome for ref, if any."""

    @abstractmethod
    def save(self, ref: str, outcome: ProcessingOutcome) -> None:
        """Store outcome for ref, replacing any previous one."""


class InMemoryResultStore(ResultStore):
    def __init__(self) -> None:
        self._outcomes: dict[str, ProcessingOutcome] = {}

    def get(self, ref: str) -> ProcessingOutcome | None:
        return self._outcomes.get(ref)

    def save(self, ref: str, outcome: ProcessingOutcome) -> None:
        self._outcomes[ref] = outcome


class ExtractionService:
    """Runs the degradation pipeline for stored or ad-hoc documents."""

    def __init__(
        self,
        orchestrator: DegradationOrchestrator,
        source: DocumentSource,
        store: ResultStore,
        health_monitor: HealthMonitor | None = None,
        max_concurrent_documents: int = 4,
    ) -> None:
        self._orchestrator = orchestrator
        self._source = source
        self._store = store
        self._health = health_monitor
        self._max_concurrent = max_concurrent_documents

    def health_snapshot(self) -> list[dict[str, object]]:
        """Cached liveness and breaker state of each probed capability."""
        if self._health is None:
            return []
        return [health.to_dict() for health in self._health.snapshot()]

    async def process(self, document_ref: str, force_reprocess: bool = False) -> ExtractionResult:
        """Return the stored result for document_ref, or process it.

        With force_reprocess the pipeline always runs and the stored outcome
        is overwritten.

        Raises:
            DocumentNotFoundError: if the ref does not resolve.
        """
        if not force_reprocess:
            stored = self._store.get(document_ref)
            if stored is not None:
                Log.info(f"Returning stored result for {document_ref}")
                return stored.result

        document = self._source.load(document_ref)
        outcome = await self._orchestrator.run(document)
        self._store.save(document_ref, outcome)
        return outcome.result

    async def process_document(self, document: Document) -> ProcessingOutcome:
        """Run the pipeline on an in-memory document and store the outcome under its ref."""
        outcome = await self._orchestrator.run(document)
        self._store.save(document.ref, outcome)
        return outcome

    async def process_many(
        self,
        document_refs: Iterable[str],
        concurrency: int | None = None,
        force_reprocess: bool = False,
    ) -> dict[str, ExtractionResult]:
        """Process several refs with at most `concurrency` pipelines in flight."""
        semaphore = asyncio.Semaphore(concurrency or self._max_concurrent)
        refs = list(dict.fromkeys(document_refs))

        async def _bounded(ref: str) -> ExtractionResult:
            async with semaphore:
                return await self.process(ref, force_reprocess=force_reprocess)

        results = await asyncio.gather(*(_bounded(ref) for ref in refs))
        return dict(zip(refs, results))

    def audit_trail(self, document_ref: str) -> list[ProcessingStep]:
        """Steps of the last stored run for document_ref (empty if never processed)."""
        stored = self._store.get(document_ref)
        return stored.steps if stored is not None else []


def build_service(
    settings: Settings,
    source: DocumentSource | None = None,
    store: ResultStore | None = None,
) -> ExtractionService:
    """Build an ExtractionService with all required adapters."""
    registry = ExtractorRegistryFactory.create(settings)
    health_monitor = HealthMonitor.for_extractors(registry.extractors, settings)
    Log.info(f"Registered extractors: {[kind.value for kind in registry.kinds]}")
    orchestrator = DegradationOrchestrator(
        registry,
        health_monitor,
        budget_seconds=settings.processing_budget_seconds,
        adapter_timeout_seconds=settings.adapter_timeout_seconds,
        max_attempts=settings.adapter_max_attempts,
        retry_backoff_seconds=settings.retry_backoff_seconds,
    )
    return ExtractionService(
        orchestrator=orchestrator,
        source=source or FileDocumentSource(files_root=Path(settings.documents_root)),
        store=store or InMemoryResultStore(),
        health_monitor=health_monitor,
        max_concurrent_documents=settings.max_concurrent_documents,
    )
