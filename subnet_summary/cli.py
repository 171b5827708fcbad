# Copyright 2025 azure-subnet-summary contributors
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# This file was created or modified with the assistance of an AI (Large Language Model).
# Review required for correctness, security, and licensing.
"""CLI entrypoint."""

from __future__ import annotations

import argparse
import functools
import logging
import re
from pathlib import Path
from typing import Sequence

from subnet_summary.az_graph import DEFAULT_PAGE_PAUSE, DEFAULT_PAGE_SIZE, fetch_subnet_inventory
from subnet_summary.cidr import Cidr, parse_address
from subnet_summary.dedup import DEFAULT_SUBNET_NAMES_TO_IGNORE, deduplicate_subnets
from subnet_summary.errors import (
    CidrError,
    DataSourceError,
    GapArithmeticError,
    InventorySourceError,
)
from subnet_summary.filters import filter_report_rows
from subnet_summary.gap_finder import DEFAULT_GAP_MASK, DEFAULT_START_ADDRESS, build_report
from subnet_summary.inventory import (
    check_for_duplicate_subnets,
    check_source_provenance,
    check_vnet_cidr_consistency,
    read_subnet_cache,
    sort_by_cidr,
)
from subnet_summary.models import SubnetRecord, VnetInfo
from subnet_summary.output import (
    render_terminal_rows,
    write_conflicts_json,
    write_report_csv,
    write_report_json,
    write_summary,
    write_summary_json,
    write_vnet_summary,
)
from subnet_summary.overlap import (
    DEFAULT_VNET_CIDRS_TO_EXCLUDE,
    filter_excluded_vnet_cidrs,
    filter_overlapping_vnets,
    find_overlapping_vnets,
    get_excluded_vnets,
    log_overlapping_vnets,
)
from subnet_summary.vnets import format_vnet_summary, group_vnets

_LOGGER = logging.getLogger(__name__)

POLICY_EXCLUDE = "exclude"
POLICY_KEEP_ONE = "keep-one"
POLICY_REPORT_ONLY = "report-only"


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser."""

    parser = argparse.ArgumentParser(description="azure-subnet-summary")
    parser.add_argument("--out-dir", required=True, help="output directory")
    parser.add_argument(
        "--cache-file",
        help="subnet cache JSON (default: subnet_cache_<date>.json, fetched when missing)",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="query Azure Resource Graph even when the cache file exists",
    )
    parser.add_argument("--az-cmd", default="az", help="az CLI executable")
    parser.add_argument(
        "--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="records per graph query page"
    )
    parser.add_argument(
        "--page-pause",
        type=float,
        default=DEFAULT_PAGE_PAUSE,
        help="seconds to pause between graph query pages",
    )
    parser.add_argument(
        "--ignore-subnet",
        action="append",
        help="subnet name to ignore (repeatable, replaces the default list)",
    )
    parser.add_argument(
        "--exclude-vnet-cidr",
        action="append",
        type=Cidr.parse,
        help="VNet CIDR whose VNets are dropped (repeatable, replaces the default list)",
    )
    parser.add_argument(
        "--overlap-policy",
        default=POLICY_EXCLUDE,
        choices=[POLICY_EXCLUDE, POLICY_KEEP_ONE, POLICY_REPORT_ONLY],
        help="how to handle VNets advertising the same CIDR (default: exclude)",
    )
    parser.add_argument(
        "--gap-mask",
        type=int,
        default=DEFAULT_GAP_MASK,
        help=f"biggest gap block to report (default: /{DEFAULT_GAP_MASK})",
    )
    parser.add_argument(
        "--start-address",
        type=parse_address,
        default=parse_address(DEFAULT_START_ADDRESS),
        help=f"address the gap walk starts from (default: {DEFAULT_START_ADDRESS})",
    )
    parser.add_argument("--vnet", action="append", help="only report this VNet (repeatable)")
    parser.add_argument("--vnet-regex", help="only report VNets matching this pattern")
    parser.add_argument(
        "--subscription",
        action="append",
        help="only report this subscription name or ID (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["INFO", "DEBUG", "WARN"],
        help="log level",
    )
    parser.add_argument(
        "--output-format",
        default="csv",
        choices=["csv", "json", "both"],
        help="output format (default: csv)",
    )
    parser.add_argument(
        "--print",
        dest="print_rows",
        action="store_true",
        help="also print the report to stdout",
    )
    return parser


def configure_logging(level: str) -> None:
    """Configure logging."""

    logging.basicConfig(level=getattr(logging, level), format="%(levelname)s %(message)s")


def main(argv: Sequence[str] | None = None) -> int:
    """Run azure-subnet-summary."""

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    fetch = functools.partial(
        fetch_subnet_inventory,
        az_cmd=args.az_cmd,
        page_size=args.page_size,
        pause_seconds=args.page_pause,
    )
    try:
        inventory = read_subnet_cache(args.cache_file, fetch=fetch, refresh=args.refresh)
    except InventorySourceError as exc:
        _LOGGER.error("Inventory query failed: %s", exc)
        return 2
    except DataSourceError as exc:
        _LOGGER.error("Inventory data defect: %s", exc)
        return 4
    except (ValueError, OSError) as exc:
        _LOGGER.error("Invalid input: %s", exc)
        return 3
    _LOGGER.info("Loaded %s subnet records", len(inventory.records))

    excluded_cidrs = args.exclude_vnet_cidr or list(DEFAULT_VNET_CIDRS_TO_EXCLUDE)
    ignore_names = (
        frozenset(args.ignore_subnet) if args.ignore_subnet else DEFAULT_SUBNET_NAMES_TO_IGNORE
    )

    records: list[SubnetRecord] = list(inventory.records)
    try:
        check_source_provenance(records)
        check_vnet_cidr_consistency(records)

        conflicts = find_overlapping_vnets(records)
        log_overlapping_vnets(conflicts)

        excluded_vnets: list[VnetInfo] = []
        if args.overlap_policy == POLICY_EXCLUDE:
            excluded_vnets = get_excluded_vnets(records, excluded_cidrs)
            records = filter_excluded_vnet_cidrs(records, excluded_cidrs)
        elif args.overlap_policy == POLICY_KEEP_ONE:
            records = filter_overlapping_vnets(records)

        records = deduplicate_subnets(records, ignore_names)
        check_for_duplicate_subnets(records)

        records = sort_by_cidr(records)
        rows = build_report(records, default_mask=args.gap_mask, start_address=args.start_address)
    except (DataSourceError, GapArithmeticError, CidrError) as exc:
        _LOGGER.error("Report aborted: %s", exc)
        return 4

    try:
        rows = filter_report_rows(
            rows,
            vnet_filter=args.vnet,
            vnet_regex=args.vnet_regex,
            subscription_filter=args.subscription,
        )
    except re.error as exc:
        _LOGGER.error("Invalid input: --vnet-regex %r: %s", args.vnet_regex, exc)
        return 3

    vnets = group_vnets(records)
    vnet_lines = format_vnet_summary(vnets, excluded_vnets)
    _LOGGER.info(
        "VNETs: found %s VNETs (%s excluded)",
        len(vnets) + len(excluded_vnets),
        len(excluded_vnets),
    )

    # Write outputs based on format
    if args.output_format in ("csv", "both"):
        write_report_csv(out_dir / "subnet_report.csv", rows)
        write_summary(out_dir / "summary.txt", rows, conflicts, excluded_vnets, len(vnets))

    if args.output_format in ("json", "both"):
        write_report_json(out_dir / "subnet_report.json", rows)
        write_conflicts_json(out_dir / "conflicts.json", conflicts)
        write_summary_json(out_dir / "summary.json", rows, conflicts, excluded_vnets, len(vnets))

    write_vnet_summary(out_dir / "vnets.txt", vnet_lines)

    if args.print_rows:
        for line in render_terminal_rows(rows):
            print(line)
        for line in vnet_lines:
            print(line)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
