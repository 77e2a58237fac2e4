"""
soulbound.core.context — Explicit per-call execution context.

The engine never reads ambient "who is calling" state.  Whoever hosts
it (CLI, MCP server, tests) authenticates the caller and passes a
``CallContext`` into every state-changing operation.
"""

from __future__ import annotations

from dataclasses import dataclass

from soulbound.core.types import NULL_IDENTITY, Identity, IdentityLike, parse_identity


@dataclass(frozen=True)
class CallContext:
    """Calling identity plus the reserved null identity.

    Attributes:
        caller: 32-byte identity of the participant invoking the call.
            Never the null identity, which owns nothing and cannot act.
        null_identity: The "no owner" sentinel for this environment.
    """

    caller: Identity
    null_identity: Identity = NULL_IDENTITY

    def __post_init__(self) -> None:
        object.__setattr__(self, "caller", parse_identity(self.caller))
        object.__setattr__(self, "null_identity", parse_identity(self.null_identity))
        if self.caller == self.null_identity:
            raise ValueError("caller cannot be the null identity")

    @classmethod
    def for_caller(cls, caller: IdentityLike) -> "CallContext":
        """Build a context from hex text or raw bytes."""
        return cls(caller=parse_identity(caller))

    def is_null(self, identity: Identity) -> bool:
        return identity == self.null_identity
