from poolsettle.resolver.payload import NotFinal, NotFound, Resolved, ResolvedEvent, ResolutionFailure
from poolsettle.resolver.source import ResolutionFatalError, resolve_from_args, run_source
from poolsettle.resolver.tiers import ResolutionRequest, resolve_event

__all__ = [
    "NotFinal",
    "NotFound",
    "Resolved",
    "ResolvedEvent",
    "ResolutionFailure",
    "ResolutionFatalError",
    "ResolutionRequest",
    "resolve_event",
    "resolve_from_args",
    "run_source",
]
