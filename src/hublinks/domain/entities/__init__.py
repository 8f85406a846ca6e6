from .links import (
    DecodedPayload,
    DecodeError,
    ExtractionError,
    LinkResolutionError,
    ProviderName,
    RedirectCandidate,
    RedirectChainResult,
    RedirectOutcome,
    RedirectResponse,
    ResolutionRequest,
    StreamLink,
)

__all__ = [
    "DecodeError",
    "DecodedPayload",
    "ExtractionError",
    "LinkResolutionError",
    "ProviderName",
    "RedirectCandidate",
    "RedirectChainResult",
    "RedirectOutcome",
    "RedirectResponse",
    "ResolutionRequest",
    "StreamLink",
]
