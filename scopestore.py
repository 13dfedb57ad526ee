#!/usr/bin/env python3
"""Inspect and edit a file-backed scopestore from the command line.

Usage: python3 scopestore.py [--config PATH] [--data-dir DIR] [--workspace ID]
                             {get,set,remove,keys,dump} ...
"""
from __future__ import annotations
import argparse
import asyncio
import sys
from pathlib import Path
from typing import Iterable, Optional

from scopestore_lib.config import load_storage_config
from scopestore_lib.logging_config import configure_logging
from scopestore_lib.storage import StorageScope, StorageTarget, create_storage
from scopestore_lib.storage.diagnostics import format_report
from scopestore_lib.storage.service import StorageService

SCOPES = {"global": StorageScope.GLOBAL, "workspace": StorageScope.WORKSPACE}
TARGETS = {"user": StorageTarget.USER, "machine": StorageTarget.MACHINE}


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="scopestore", description=__doc__.splitlines()[0])
    p.add_argument("--config", type=Path, default=None, help="YAML storage config file")
    p.add_argument("--data-dir", default=None, help="Storage directory (overrides config)")
    p.add_argument("--workspace", default=None, help="Workspace id (overrides config)")
    p.add_argument("--serializer", choices=["json", "yaml"], default=None)
    p.add_argument("--log-level", default=None)

    sub = p.add_subparsers(dest="command", required=True)

    def scoped(name: str, help: str) -> argparse.ArgumentParser:
        sp = sub.add_parser(name, help=help)
        sp.add_argument("--scope", choices=list(SCOPES), default="global")
        return sp

    sp = scoped("get", "Print the value stored under KEY")
    sp.add_argument("key")

    sp = scoped("set", "Store VALUE under KEY")
    sp.add_argument("key")
    sp.add_argument("value")
    sp.add_argument("--target", choices=list(TARGETS), default="machine")

    sp = scoped("remove", "Remove KEY")
    sp.add_argument("key")

    sp = scoped("keys", "List keys recorded for a target")
    sp.add_argument("--target", choices=list(TARGETS), default="user")

    sub.add_parser("dump", help="Print the contents of both partitions")
    return p


def open_storage(args: argparse.Namespace) -> StorageService:
    cfg = load_storage_config(args.config)
    return create_storage(
        backend="file",
        serializer=args.serializer or cfg.serializer,
        data_dir=args.data_dir or cfg.data_dir,
        workspace=args.workspace or cfg.workspace_id,
    )


def run(args: argparse.Namespace, storage: StorageService) -> int:
    if args.command == "get":
        value = storage.get(args.key, SCOPES[args.scope])
        if value is None:
            return 1
        print(value)
        return 0
    if args.command == "set":
        storage.store2(args.key, args.value, SCOPES[args.scope], TARGETS[args.target])
        return 0
    if args.command == "remove":
        storage.remove(args.key, SCOPES[args.scope])
        return 0
    if args.command == "keys":
        for key in storage.keys(SCOPES[args.scope], TARGETS[args.target]):
            print(key)
        return 0
    if args.command == "dump":
        print(format_report(storage.log_storage()))
        return 0
    return 2


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = get_parser().parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level, args.config)
    try:
        storage = open_storage(args)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    try:
        return run(args, storage)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    finally:
        asyncio.run(storage.close())


if __name__ == "__main__":
    sys.exit(main())
