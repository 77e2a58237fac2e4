"""
Soulbound -- MCP server exposing the token engine as tools.

Run with:
    soulbound serve --data-dir ./data

Or configure in your MCP client as:
    {
        "mcpServers": {
            "soulbound": {
                "command": "soulbound",
                "args": ["serve", "--data-dir", "/path/to/data"]
            }
        }
    }

Tools exposed:
    Entry points:
        soulbound_give      -- Recipient-consented transfer in
        soulbound_take      -- Origin-consented transfer / consent consumption
        soulbound_unequip   -- Owner releases a token
    Views:
        soulbound_info      -- Name, symbol, next token id, take mode
        soulbound_owner     -- Current owner of a token
        soulbound_balance   -- Number of tokens an identity owns
        soulbound_used      -- Whether a token's consent is consumed
        soulbound_digest    -- Consent digest a counterpart must sign
        soulbound_history   -- Transfer log
    Operator:
        soulbound_allocate  -- Make more token ids valid

Identities and signatures are hex strings.  The hosting MCP client is
the execution environment: it is responsible for authenticating the
``caller`` it passes to the entry points.
"""

import atexit
import json
import logging
import traceback
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from soulbound.core.config import Config
from soulbound.core.context import CallContext
from soulbound.core.errors import SoulboundError
from soulbound.core.types import identity_hex, parse_identity, parse_token_id
from soulbound.system import SoulboundSystem

log = logging.getLogger("soulbound.server")

#: Upper bound on history page size.
MAX_HISTORY = 500


# ---------------------------------------------------------------------------
# Error-safe tool decorator
# ---------------------------------------------------------------------------


def _safe_json(fn):
    """Wrap an MCP tool so exceptions return JSON errors instead of crashing."""

    def wrapper(*args: Any, **kwargs: Any) -> str:
        tool_name = getattr(fn, "__name__", "unknown")
        try:
            return fn(*args, **kwargs)
        except SoulboundError as exc:
            log.warning("Tool %s rejected: %s", tool_name, exc)
            return json.dumps(
                {
                    "error": True,
                    "tool": tool_name,
                    "code": exc.code,
                    "message": str(exc),
                }
            )
        except ValueError as exc:
            log.warning("Tool %s bad request: %s", tool_name, exc)
            return json.dumps(
                {
                    "error": True,
                    "tool": tool_name,
                    "code": "bad_request",
                    "message": str(exc),
                }
            )
        except Exception as exc:
            log.error("Tool %s failed: %s\n%s", tool_name, exc, traceback.format_exc())
            return json.dumps(
                {
                    "error": True,
                    "tool": tool_name,
                    "code": "internal_error",
                    "message": str(exc),
                }
            )

    # Preserve the original function metadata so FastMCP sees the right
    # name, docstring, and parameter annotations.
    wrapper.__name__ = fn.__name__
    wrapper.__qualname__ = fn.__qualname__
    wrapper.__doc__ = fn.__doc__
    wrapper.__annotations__ = fn.__annotations__
    wrapper.__module__ = fn.__module__
    wrapper.__wrapped__ = fn  # type: ignore[attr-defined]
    return wrapper


# ---------------------------------------------------------------------------
# Server singleton
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "Soulbound",
    instructions="Consent-gated soulbound token ledger",
)

# The SoulboundSystem is initialized once when the server starts.
# Tools reference it via _get_system().
_system: Optional[SoulboundSystem] = None


def init_system(
    data_dir: Optional[str] = None,
    config_path: Optional[str] = None,
    **kwargs: Any,
) -> SoulboundSystem:
    """Initialize the global SoulboundSystem instance."""
    global _system

    config = Config.load(data_dir=data_dir, config_path=config_path, **kwargs)
    _system = SoulboundSystem(config=config)
    _system.ensure_initialized()
    return _system


def _get_system() -> SoulboundSystem:
    """Get the global SoulboundSystem, initializing with defaults if needed."""
    global _system
    if _system is None:
        _system = init_system()
    return _system


def _ctx(caller: str) -> CallContext:
    return CallContext.for_caller(caller)


# ===========================================================================
# Entry Points
# ===========================================================================


@mcp.tool()
@_safe_json
def soulbound_give(caller: str, to: str, token_id: int, signature: str) -> str:
    """Give a token to a recipient who pre-signed their consent.

    The recipient signs soulbound_digest(active=caller, passive=to, token_id).

    Args:
        caller: Hex identity of the giver (the transaction sender).
        to: Hex identity of the recipient.
        token_id: Token to give.
        signature: Hex Ed25519 signature by the recipient.
    """
    system = _get_system()
    token_id = parse_token_id(token_id)
    result = system.token.give(_ctx(caller), to, token_id, signature)
    return json.dumps(
        {
            "token_id": result,
            "owner": identity_hex(system.token.get_token_owner(result)),
            "used": system.token.get_used_hash(result),
        },
        indent=2,
    )


@mcp.tool()
@_safe_json
def soulbound_take(caller: str, origin: str, token_id: int, signature: str) -> str:
    """Take a token from an origin holder who pre-signed their consent.

    The origin signs soulbound_digest(active=caller, passive=origin, token_id).

    Args:
        caller: Hex identity of the taker (the transaction sender).
        origin: Hex identity of the origin holder.
        token_id: Token to take.
        signature: Hex Ed25519 signature by the origin.
    """
    system = _get_system()
    token_id = parse_token_id(token_id)
    result = system.token.take(_ctx(caller), origin, token_id, signature)
    return json.dumps(
        {
            "token_id": result,
            "owner": identity_hex(system.token.get_token_owner(result)),
            "used": system.token.get_used_hash(result),
            "take_mode": system.token.take_mode,
        },
        indent=2,
    )


@mcp.tool()
@_safe_json
def soulbound_unequip(caller: str, token_id: int) -> str:
    """Release a token back to the null identity.

    Only the current owner may unequip.  Clears the consent flag so the
    token can be given or taken again.

    Args:
        caller: Hex identity of the current owner.
        token_id: Token to release.
    """
    system = _get_system()
    token_id = parse_token_id(token_id)
    system.token.unequip(_ctx(caller), token_id)
    return json.dumps({"token_id": token_id, "unequipped": True})


# ===========================================================================
# Views
# ===========================================================================


@mcp.tool()
@_safe_json
def soulbound_info() -> str:
    """Token name, symbol, next token id and ledger statistics."""
    system = _get_system()
    return json.dumps(system.get_stats(), indent=2)


@mcp.tool()
@_safe_json
def soulbound_owner(token_id: int) -> str:
    """Current owner of a token (all zeros when unowned).

    Args:
        token_id: Token to look up.
    """
    system = _get_system()
    token_id = parse_token_id(token_id)
    owner = system.token.get_token_owner(token_id)
    return json.dumps({"token_id": token_id, "owner": identity_hex(owner)})


@mcp.tool()
@_safe_json
def soulbound_balance(owner: str) -> str:
    """Number of tokens currently owned by an identity.

    Args:
        owner: Hex identity.
    """
    system = _get_system()
    identity = parse_identity(owner)
    return json.dumps(
        {
            "owner": identity_hex(identity),
            "balance": system.token.get_user_balance(identity),
            "tokens": system.token.registry.tokens_of(identity),
        }
    )


@mcp.tool()
@_safe_json
def soulbound_used(token_id: int) -> str:
    """Whether a token's consent is currently consumed.

    Args:
        token_id: Token to look up.
    """
    system = _get_system()
    token_id = parse_token_id(token_id)
    return json.dumps({"token_id": token_id, "used": system.token.get_used_hash(token_id)})


@mcp.tool()
@_safe_json
def soulbound_digest(active: str, passive: str, token_id: int) -> str:
    """Consent digest the passive participant has to sign.

    Args:
        active: Hex identity of the participant who will submit the call.
        passive: Hex identity of the counterpart whose consent is needed.
        token_id: Token the consent is for.
    """
    system = _get_system()
    token_id = parse_token_id(token_id)
    digest = system.token.consent.digest(
        parse_identity(active), parse_identity(passive), token_id
    )
    return json.dumps({"token_id": token_id, "digest": digest.hex()})


@mcp.tool()
@_safe_json
def soulbound_history(token_id: int = -1, limit: int = 50) -> str:
    """Transfer log, most recent first.

    Args:
        token_id: Restrict to one token (-1 = all tokens).
        limit: Maximum number of records.
    """
    limit = max(1, min(limit, MAX_HISTORY))
    system = _get_system()
    records = system.token.get_transfers(
        token_id=token_id if token_id >= 0 else None, limit=limit
    )
    return json.dumps([r.to_dict() for r in records], indent=2)


# ===========================================================================
# Operator
# ===========================================================================


@mcp.tool()
@_safe_json
def soulbound_allocate(count: int = 1) -> str:
    """Make more token ids valid.

    Args:
        count: How many new ids to allocate.
    """
    system = _get_system()
    ids = system.allocate(count)
    return json.dumps(
        {"first": ids.start, "last": ids.stop - 1, "next_token_id": ids.stop}
    )


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def _shutdown() -> None:
    """Close the global SoulboundSystem on exit."""
    global _system
    if _system is not None:
        log.info("Shutting down soulbound ledger...")
        try:
            _system.close()
        except Exception as exc:
            log.warning("Error during shutdown: %s", exc)
        _system = None


def run_server(
    data_dir: Optional[str] = None,
    config_path: Optional[str] = None,
    transport: str = "stdio",
    host: str = "127.0.0.1",
    port: int = 8766,
) -> None:
    """Initialize and run the MCP server.

    Args:
        data_dir: Path to the soulbound data directory.
        config_path: Path to YAML config file.
        transport: MCP transport: "stdio", "streamable-http", or "sse".
        host: Bind address for HTTP transports.
        port: Port for HTTP transports.
    """
    init_system(data_dir=data_dir, config_path=config_path)
    atexit.register(_shutdown)
    log.info("Starting soulbound MCP server (transport=%s)", transport)
    if transport in ("streamable-http", "sse"):
        mcp.settings.host = host
        mcp.settings.port = port
        log.info("HTTP endpoint: http://%s:%d", host, port)
    try:
        mcp.run(transport=transport)  # type: ignore[arg-type]
    finally:
        _shutdown()
