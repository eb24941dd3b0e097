"""
Trace replay generator.

Turns a recorded execution trace into a Foundry test harness that replays
the main actor's outbound calls against a mainnet fork.
"""

from .models import (
    CallbackKind,
    CallbackRegion,
    DecodedCall,
    DecodedParam,
    DecodeTier,
    ReplayModel,
    SignatureInfo,
    TokenInfo,
    TraceNode,
)
from .pipeline import ReplayPipeline, generate_replay

__version__ = "0.1.0"

__all__ = [
    "CallbackKind",
    "CallbackRegion",
    "DecodeTier",
    "DecodedCall",
    "DecodedParam",
    "ReplayModel",
    "ReplayPipeline",
    "SignatureInfo",
    "TokenInfo",
    "TraceNode",
    "generate_replay",
]
