from __future__ import annotations

import argparse
import logging
import sys
from typing import List

from .config import check_configs, load_config, selected_checks
from .dns_client import DnsClient
from .healthcheck import DomainHealthCheck
from .logging_config import init_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="domainhealth",
        description="DNSSEC chain, WHOIS and DNS hygiene checks for domains",
    )
    parser.add_argument("domains", nargs="+", help="Domain names to check")
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "-v",
        "--var",
        action="append",
        default=[],
        metavar="KEY=YAML",
        help="Override a config variable (repeatable)",
    )
    parser.add_argument(
        "--checks",
        default=None,
        help="Comma separated checks to run (default: config, else dnssec,whois)",
    )
    parser.add_argument(
        "--unicode",
        action="store_true",
        default=None,
        help="Print IDN domain names in Unicode",
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Domains checked in parallel"
    )
    parser.add_argument(
        "--unknown-keys",
        choices=("ignore", "warn", "error"),
        default=None,
        help="Handling of unrecognized config keys (default: config, else warn)",
    )
    return parser


def main(argv: List[str] | None = None) -> int:
    """
    Brief: CLI entry point.

    Inputs:
      - argv: Command-line arguments (defaults to sys.argv[1:]).

    Outputs:
      - int exit code: 0 after printing the JSON results, 1 when the
        configuration or the requested checks are invalid.

    Example use:
        CLI:
            domainhealth --checks dnssec,whois example.com example.org

        Programmatic:
        >>> main(["--checks", "dnssec", "example.com"])  # doctest: +SKIP
        0
    """
    args = _build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config, cli_vars=args.var, unknown_keys=args.unknown_keys)
    except (OSError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    init_logging(cfg.get("logging"))
    logger = logging.getLogger("domainhealth.main")
    if args.config:
        logger.info("Loaded config from %s", args.config)

    checks = (
        [c for c in args.checks.split(",") if c.strip()]
        if args.checks
        else selected_checks(cfg)
    )
    output_cfg = cfg.get("output") or {}
    unicode_output = (
        args.unicode if args.unicode is not None else bool(output_cfg.get("unicode", False))
    )
    workers = args.workers or int(output_cfg.get("workers", 4))

    dns_cfg = cfg.get("dns") or {}
    dns = DnsClient(
        nameservers=dns_cfg.get("nameservers"),
        lifetime=float(dns_cfg.get("lifetime", 2.0)),
    )

    try:
        health = DomainHealthCheck(
            checks=checks,
            check_config=check_configs(cfg),
            dns=dns,
            unicode_output=unicode_output,
        )
    except (KeyError, ValueError) as exc:
        logger.error("Invalid check configuration: %s", exc)
        print(str(exc).strip("'\""), file=sys.stderr)
        return 1

    logger.info(
        "Running %s for %d domain(s)",
        ", ".join(t.value for t in health.check_types),
        len(args.domains),
    )
    results = health.verify_many(args.domains, max_workers=workers)
    print(health.to_json(results))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
