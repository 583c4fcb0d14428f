from enum import Enum


class PipelineState(str, Enum):
    """Degradation state machine. Every terminal state yields a result."""

    PENDING = "PENDING"
    PRIMARY_ATTEMPT = "PRIMARY_ATTEMPT"
    SUCCESS = "SUCCESS"
    DEGRADE = "DEGRADE"
    FALLBACK_ATTEMPT = "FALLBACK_ATTEMPT"
    SUCCESS_DEGRADED = "SUCCESS_DEGRADED"
    MINIMAL_RESPONSE = "MINIMAL_RESPONSE"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({
    PipelineState.SUCCESS,
    PipelineState.SUCCESS_DEGRADED,
    PipelineState.MINIMAL_RESPONSE,
})

ALLOWED_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.PENDING: frozenset({PipelineState.PRIMARY_ATTEMPT, PipelineState.DEGRADE}),
    PipelineState.PRIMARY_ATTEMPT: frozenset({PipelineState.SUCCESS, PipelineState.DEGRADE}),
    PipelineState.DEGRADE: frozenset({PipelineState.FALLBACK_ATTEMPT}),
    PipelineState.FALLBACK_ATTEMPT: frozenset({
        PipelineState.SUCCESS_DEGRADED,
        PipelineState.MINIMAL_RESPONSE,
    }),
}
