#!/usr/bin/env python3
"""
gxregistry CLI

Usage:
  gxregistry serve [--host H] [--port P]
  gxregistry publish <name> <hash> [--author A]
  gxregistry show <name>
  gxregistry list
  gxregistry size <hash>

Global options:
  -c/--config <file.yaml>   Config file (GXREGISTRY_* env vars override it)
  -v/--verbose              Debug logging
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

import yaml

from .config import Config, load_config
from .errors import RegistryError, StartupLoadFailed
from .registry import RegistryStore
from .service import RegistryService
from .store import IPFSStore
from .walker import DAGSizeWalker

logger = logging.getLogger(__name__)


def build_service(config: Config) -> RegistryService:
    """Wire the store client, registry and service from config."""
    store = IPFSStore(config.api_url, timeout=config.store_timeout)
    registry = RegistryStore.open(config.registry_path)
    return RegistryService(
        store,
        registry,
        max_size=config.max_package_size,
        max_nodes=config.max_nodes,
        strict_pin=config.strict_pin,
    )


def cmd_serve(args, config: Config) -> int:
    """Run the HTTP front end."""
    from .server import RegistryServer

    service = build_service(config)
    server = RegistryServer(
        service,
        host=args.host or config.host,
        port=args.port if args.port is not None else config.port,
        command_prefix=config.command_prefix,
    )
    server.make_server()
    print(f"Registry server running on http://{server.host}:{server.port}")
    server.start()
    return 0


def cmd_publish(args, config: Config) -> int:
    """Publish a package directly against the local registry."""
    service = build_service(config)
    result = service.publish(args.name, args.hash, author=args.author)
    if result.success:
        print(f"{result.message} {args.name} -> {args.hash} ({result.size} bytes)")
        if result.pin_error:
            print(f"  warning: {result.pin_error}")
        if result.unpin_error:
            print(f"  warning: {result.unpin_error}")
        return 0
    print(f"Error [{result.error_kind}]: {result.message}", file=sys.stderr)
    return 1


def cmd_show(args, config: Config) -> int:
    registry = RegistryStore.open(config.registry_path)
    entry = registry.get(args.name)
    if entry is None:
        print(f"no such package: {args.name}", file=sys.stderr)
        return 1
    print(json.dumps({"name": entry.name, **entry.to_dict()}, indent=2))
    return 0


def cmd_list(args, config: Config) -> int:
    registry = RegistryStore.open(config.registry_path)
    for entry in registry.list():
        print(f"{entry.name}\t{entry.content_address}\t{entry.author}")
    return 0


def cmd_size(args, config: Config) -> int:
    """Report the DAG size of a root without publishing it."""
    store = IPFSStore(config.api_url, timeout=config.store_timeout)
    walker = DAGSizeWalker(store, max_size=config.max_package_size,
                           max_nodes=config.max_nodes)
    size = walker.compute_size(args.hash)
    print(f"{args.hash}: {size} bytes (limit {config.max_package_size})")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="gxregistry",
        description="Content-addressed package registry",
    )
    parser.add_argument("-c", "--config", help="Config YAML file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, help="Port to bind to")

    publish_parser = subparsers.add_parser("publish", help="Publish a package")
    publish_parser.add_argument("name", help="Package name")
    publish_parser.add_argument("hash", help="Content address of the package root")
    publish_parser.add_argument("--author", default="", help="Submitter identity")

    show_parser = subparsers.add_parser("show", help="Show a registry entry")
    show_parser.add_argument("name", help="Package name")

    subparsers.add_parser("list", help="List registry entries")

    size_parser = subparsers.add_parser("size", help="Compute the size of a package DAG")
    size_parser.add_argument("hash", help="Content address of the root")

    args = parser.parse_args(argv)

    commands = {
        "serve": cmd_serve,
        "publish": cmd_publish,
        "show": cmd_show,
        "list": cmd_list,
        "size": cmd_size,
    }
    if args.command not in commands:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        return commands[args.command](args, config)
    except StartupLoadFailed as e:
        logger.critical(str(e))
        return 3
    except RegistryError as e:
        print(f"Error [{e.kind}]: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
