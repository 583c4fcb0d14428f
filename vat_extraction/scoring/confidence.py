"""The single place extraction confidence is computed."""

from vat_extraction.scoring.models import ValidationFlag

ACCEPT_THRESHOLD = 0.6
REVIEW_THRESHOLD = 0.3
FALLBACK_CAP = 0.3
NO_CANDIDATES_CAP = 0.1


def score_confidence(
    extractor_confidence: float | None,
    readability_ratio: float | None,
    candidate_count: int,
    *,
    fallback: bool = False,
) -> float:
    """Score an extraction in [0, 1].

    Extractor-reported confidence wins when present. Otherwise the score is
    derived from text readability and how many candidates were found. Regex
    fallback extraction is capped at 0.3 and an extraction without any
    candidate amount at 0.1.
    """
    if extractor_confidence is not None:
        score = extractor_confidence
    elif readability_ratio is not None:
        score = readability_ratio * min(1.0, 0.4 + 0.3 * candidate_count)
    else:
        score = min(1.0, 0.3 * candidate_count)

    if fallback:
        score = min(score, FALLBACK_CAP)
    if candidate_count == 0:
        score = min(score, NO_CANDIDATES_CAP)
    return round(max(0.0, min(1.0, score)), 4)


def confidence_flags(confidence: float) -> list[ValidationFlag]:
    """Trust annotations for a confidence score; data is never discarded."""
    if confidence >= ACCEPT_THRESHOLD:
        return []
    if confidence >= REVIEW_THRESHOLD:
        return [ValidationFlag.LOW_CONFIDENCE]
    return [ValidationFlag.LOW_CONFIDENCE, ValidationFlag.MANUAL_REVIEW_REQUIRED]
