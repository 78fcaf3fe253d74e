"""CLI entry point for vm-keeper."""

from __future__ import annotations

import argparse
from typing import List, Optional
from xml.etree.ElementTree import ParseError

from vmkeeper.config import parse_env
from vmkeeper.constants import EXIT_FAILURE, EXIT_SUCCESS
from vmkeeper.exceptions import KeeperError
from vmkeeper.hypervisor import LibvirtClient
from vmkeeper.models import KeeperConfig
from vmkeeper.supervisor import Supervisor
from vmkeeper.utils import close_syslog, configure_syslog, load_domain_definition, log


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vm-keeper",
        description="Keep a single libvirt domain running; suspend it on SIGTERM",
    )
    parser.add_argument("vm_path", metavar="DOMAIN_XML", help="Path to the libvirt domain XML definition")
    parser.add_argument("--show-config", action="store_true", help="Show resolved configuration and exit")
    parser.add_argument("--dry-run", action="store_true", help="Validate config and domain definition, then exit")
    return parser


def show_config(cfg: KeeperConfig) -> None:
    """Print the resolved configuration and exit."""
    import dataclasses

    for field in dataclasses.fields(cfg):
        print(f"  {field.name}: {getattr(cfg, field.name)}")


def dry_run(cfg: KeeperConfig) -> int:
    log("INFO", "=== Configuration ===")
    show_config(cfg)
    log("INFO", "=== Domain Definition ===")
    try:
        name, _xml = load_domain_definition(cfg.vm_path)
    except (OSError, ParseError, ValueError) as exc:
        log("ERROR", f"Domain XML:  {cfg.vm_path} ({exc})")
        return EXIT_FAILURE
    log("SUCCESS", f"Domain XML:  {cfg.vm_path} (domain '{name}')")
    log("INFO", "=== Dry-run complete (hypervisor not contacted) ===")
    return EXIT_SUCCESS


def _make_client(cfg: KeeperConfig) -> LibvirtClient:
    return LibvirtClient(cfg.libvirt_uri)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = parse_env(args.vm_path)
    except KeeperError as exc:
        log("ERROR", str(exc))
        return EXIT_FAILURE

    if args.show_config:
        show_config(cfg)
        return EXIT_SUCCESS

    if args.dry_run:
        return dry_run(cfg)

    if cfg.syslog_enabled:
        configure_syslog(cfg.syslog_ident)
    try:
        supervisor = Supervisor(cfg, _make_client(cfg))
        return supervisor.run()
    except Exception as exc:
        log("ERROR", f"Unexpected error: {exc}")
        import traceback

        traceback.print_exc()
        return EXIT_FAILURE
    finally:
        close_syslog()
