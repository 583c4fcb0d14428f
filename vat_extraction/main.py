import argparse
import asyncio
import json
import sys
from pathlib import Path

from vat_extraction.config.settings import Settings
from vat_extraction.documents.exceptions import DocumentNotFoundError
from vat_extraction.documents.models import DocumentCategory
from vat_extraction.documents.source import FileDocumentSource
from vat_extraction.logging.logger import Log
from vat_extraction.service import build_service


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vat_extraction",
        description="Extract VAT figures from an invoice, receipt or spreadsheet.",
    )
    parser.add_argument("path", type=Path, help="document to process")
    parser.add_argument(
        "--category",
        choices=[category.value for category in DocumentCategory],
        default=DocumentCategory.OTHER.value,
        help="which VAT bucket extracted amounts belong to",
    )
    parser.add_argument("--mime-type", default=None, help="override the guessed MIME type")
    parser.add_argument(
        "--force",
        action="store_true",
        help="reprocess even if a stored result exists",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, settings: Settings) -> dict[str, object]:
    path = args.path.resolve()
    source = FileDocumentSource(files_root=path.parent)
    source.register(path.name, DocumentCategory(args.category), mime_type=args.mime_type)
    service = build_service(settings, source=source)
    result = await service.process(path.name, force_reprocess=args.force)
    return {
        "result": result.to_dict(),
        "auditTrail": [step.to_dict() for step in service.audit_trail(path.name)],
        "capabilities": service.health_snapshot(),
    }


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> build service -> process one file -> print JSON."""
    args = parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    try:
        payload = asyncio.run(run(args, settings))
    except DocumentNotFoundError as exc:
        Log.error(str(exc))
        return 1
    json.dump(payload, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
