"""
soulbound.__main__ -- CLI entry point.

Usage:
    soulbound init [--data-dir DIR] [--name NAME] [--symbol SYM] [--allocate N]
    soulbound serve [--data-dir DIR] [--config PATH] [--transport stdio|sse|streamable-http]
    soulbound keygen NAME
    soulbound identity NAME
    soulbound sign --key NAME --active HEX --token-id N
    soulbound give --key NAME --to HEX --token-id N --signature HEX
    soulbound take --key NAME --origin HEX --token-id N --signature HEX
    soulbound unequip --key NAME --token-id N
    soulbound allocate [--count N]
    soulbound info | owner TOKEN_ID | history [--token-id N]

Local key files stand in for the execution environment's
authentication: ``give``/``take``/``unequip`` run as the identity of
the ``--key`` they are given.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from soulbound.core.errors import SoulboundError


def _add_data_dir(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--data-dir",
        default=None,
        help="Data directory (default: $SOULBOUND_DATA_DIR or ./soulbound_data)",
    )
    p.add_argument("--config", default=None, help="Path to soulbound.yaml config")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="soulbound",
        description="Soulbound -- consent-gated soulbound token ledger",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # -- init --------------------------------------------------------------
    init_p = sub.add_parser("init", help="Initialize a new ledger data directory")
    _add_data_dir(init_p)
    init_p.add_argument("--name", default=None, help="Token name")
    init_p.add_argument("--symbol", default=None, help="Token symbol")
    init_p.add_argument(
        "--take-mode", default=None, choices=["consume", "equip"], help="take behaviour"
    )
    init_p.add_argument(
        "--allocate", type=int, default=0, help="Token ids to allocate up front"
    )

    # -- serve -------------------------------------------------------------
    serve_p = sub.add_parser("serve", help="Start the MCP server")
    _add_data_dir(serve_p)
    serve_p.add_argument(
        "--transport",
        default="stdio",
        choices=["stdio", "sse", "streamable-http"],
        help="MCP transport (default: stdio)",
    )
    serve_p.add_argument("--host", default="127.0.0.1")
    serve_p.add_argument("--port", type=int, default=8766)

    # -- keys --------------------------------------------------------------
    keygen_p = sub.add_parser("keygen", help="Create a named participant key")
    keygen_p.add_argument("name")
    keygen_p.add_argument("--force", action="store_true", help="Overwrite existing key")
    _add_data_dir(keygen_p)

    ident_p = sub.add_parser("identity", help="Print the identity of a named key")
    ident_p.add_argument("name")
    _add_data_dir(ident_p)

    sign_p = sub.add_parser("sign", help="Sign a consent as the passive participant")
    sign_p.add_argument("--key", required=True, help="Signer key name (passive side)")
    sign_p.add_argument("--active", required=True, help="Hex identity of the caller-to-be")
    sign_p.add_argument("--token-id", type=int, required=True)
    _add_data_dir(sign_p)

    # -- entry points ------------------------------------------------------
    give_p = sub.add_parser("give", help="Give a token to a consenting recipient")
    give_p.add_argument("--key", required=True, help="Caller key name")
    give_p.add_argument("--to", required=True, help="Hex identity of the recipient")
    give_p.add_argument("--token-id", type=int, required=True)
    give_p.add_argument("--signature", required=True, help="Recipient's hex signature")
    _add_data_dir(give_p)

    take_p = sub.add_parser("take", help="Take a token from a consenting origin")
    take_p.add_argument("--key", required=True, help="Caller key name")
    take_p.add_argument("--origin", required=True, help="Hex identity of the origin")
    take_p.add_argument("--token-id", type=int, required=True)
    take_p.add_argument("--signature", required=True, help="Origin's hex signature")
    _add_data_dir(take_p)

    unequip_p = sub.add_parser("unequip", help="Release a token you own")
    unequip_p.add_argument("--key", required=True, help="Caller key name")
    unequip_p.add_argument("--token-id", type=int, required=True)
    _add_data_dir(unequip_p)

    # -- operator / views --------------------------------------------------
    alloc_p = sub.add_parser("allocate", help="Make more token ids valid")
    alloc_p.add_argument("--count", type=int, default=1)
    _add_data_dir(alloc_p)

    info_p = sub.add_parser("info", help="Show token info and ledger statistics")
    _add_data_dir(info_p)

    owner_p = sub.add_parser("owner", help="Show the owner of a token")
    owner_p.add_argument("token_id", type=int)
    _add_data_dir(owner_p)

    hist_p = sub.add_parser("history", help="Show the transfer log")
    hist_p.add_argument("--token-id", type=int, default=None)
    hist_p.add_argument("--limit", type=int, default=20)
    _add_data_dir(hist_p)

    args = parser.parse_args(argv)

    # -- Logging -----------------------------------------------------------
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        return 0

    handler = _COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 0

    try:
        handler(args)
    except SoulboundError as exc:
        print(f"error [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    except (ValueError, FileNotFoundError, FileExistsError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_config(args: argparse.Namespace):
    from soulbound.core.config import Config

    return Config.load(
        data_dir=getattr(args, "data_dir", None),
        config_path=getattr(args, "config", None),
    )


def _open(args: argparse.Namespace):
    from soulbound.system import SoulboundSystem

    return SoulboundSystem(config=_load_config(args))


def _print(data) -> None:
    print(json.dumps(data, indent=2, default=str))


# ---------------------------------------------------------------------------
# Command implementations
# ---------------------------------------------------------------------------


def _cmd_init(args: argparse.Namespace) -> None:
    """Create a data directory, write soulbound.yaml, and initialize the token."""
    from soulbound.system import SoulboundSystem

    config = _load_config(args)
    if args.name:
        config.token_name = args.name
    if args.symbol:
        config.token_symbol = args.symbol
    if args.take_mode:
        config.take_mode = args.take_mode
    config.ensure_directories()
    config_path = config.config_path
    if not config_path.exists() or args.name or args.symbol or args.take_mode:
        config.write_yaml(config_path)

    with SoulboundSystem(config=config) as sb:
        sb.ensure_initialized()
        if args.allocate:
            sb.allocate(args.allocate)
        info = sb.token.info()

    print(f"Initialized {info.name} ({info.symbol}) at: {config.data_dir}")
    print(f"  ledger:        {config.db_path}")
    print(f"  config:        {config_path}")
    print(f"  next token id: {info.next_token_id}")
    print()
    print("Next steps:")
    print("  1. soulbound keygen <name>   for each local participant")
    print("  2. soulbound allocate --count N")
    print("  3. soulbound serve --data-dir", str(config.data_dir))


def _cmd_serve(args: argparse.Namespace) -> None:
    """Start the MCP server."""
    from soulbound.server import run_server

    run_server(
        data_dir=args.data_dir,
        config_path=args.config,
        transport=args.transport,
        host=args.host,
        port=args.port,
    )


def _cmd_keygen(args: argparse.Namespace) -> None:
    with _open(args) as sb:
        participant = sb.keys.create(args.name, overwrite=args.force)
    _print({"name": args.name, "identity": participant.identity.hex()})


def _cmd_identity(args: argparse.Namespace) -> None:
    with _open(args) as sb:
        participant = sb.keys.load(args.name)
    _print({"name": args.name, "identity": participant.identity.hex()})


def _cmd_sign(args: argparse.Namespace) -> None:
    from soulbound.core.types import identity_hex, parse_identity, parse_token_id

    token_id = parse_token_id(args.token_id)
    with _open(args) as sb:
        signer = sb.keys.load(args.key)
        signature = signer.consent(active=args.active, token_id=token_id)
    _print(
        {
            "passive": signer.identity.hex(),
            "active": identity_hex(parse_identity(args.active)),
            "token_id": token_id,
            "signature": signature.hex(),
        }
    )


def _cmd_give(args: argparse.Namespace) -> None:
    from soulbound.core.context import CallContext
    from soulbound.core.types import parse_token_id

    with _open(args) as sb:
        caller = sb.keys.load(args.key)
        token_id = sb.token.give(
            CallContext(caller.identity),
            args.to,
            parse_token_id(args.token_id),
            args.signature,
        )
        owner = sb.token.get_token_owner(token_id)
    _print({"token_id": token_id, "owner": owner.hex()})


def _cmd_take(args: argparse.Namespace) -> None:
    from soulbound.core.context import CallContext
    from soulbound.core.types import parse_token_id

    with _open(args) as sb:
        caller = sb.keys.load(args.key)
        token_id = sb.token.take(
            CallContext(caller.identity),
            args.origin,
            parse_token_id(args.token_id),
            args.signature,
        )
        owner = sb.token.get_token_owner(token_id)
        take_mode = sb.token.take_mode
    _print({"token_id": token_id, "owner": owner.hex(), "take_mode": take_mode})


def _cmd_unequip(args: argparse.Namespace) -> None:
    from soulbound.core.context import CallContext
    from soulbound.core.types import parse_token_id

    with _open(args) as sb:
        caller = sb.keys.load(args.key)
        token_id = parse_token_id(args.token_id)
        sb.token.unequip(CallContext(caller.identity), token_id)
    _print({"token_id": token_id, "unequipped": True})


def _cmd_allocate(args: argparse.Namespace) -> None:
    with _open(args) as sb:
        ids = sb.allocate(args.count)
    _print({"first": ids.start, "last": ids.stop - 1, "next_token_id": ids.stop})


def _cmd_info(args: argparse.Namespace) -> None:
    with _open(args) as sb:
        _print(sb.get_stats())


def _cmd_owner(args: argparse.Namespace) -> None:
    from soulbound.core.types import parse_token_id

    token_id = parse_token_id(args.token_id)
    with _open(args) as sb:
        owner = sb.token.get_token_owner(token_id)
        used = sb.token.get_used_hash(token_id)
    _print({"token_id": token_id, "owner": owner.hex(), "used": used})


def _cmd_history(args: argparse.Namespace) -> None:
    with _open(args) as sb:
        records = sb.token.get_transfers(token_id=args.token_id, limit=args.limit)
    _print([r.to_dict() for r in records])


_COMMANDS = {
    "init": _cmd_init,
    "serve": _cmd_serve,
    "keygen": _cmd_keygen,
    "identity": _cmd_identity,
    "sign": _cmd_sign,
    "give": _cmd_give,
    "take": _cmd_take,
    "unequip": _cmd_unequip,
    "allocate": _cmd_allocate,
    "info": _cmd_info,
    "owner": _cmd_owner,
    "history": _cmd_history,
}


if __name__ == "__main__":
    sys.exit(main())
