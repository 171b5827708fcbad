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
"""Output rendering for reports."""

from __future__ import annotations

import csv
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Sequence

from subnet_summary.models import (
    UNCONFIGURED_CIDR,
    OverlapConflict,
    ReportRow,
    VnetInfo,
)
from subnet_summary.normalize import format_cidr_list

REPORT_COLUMNS = (
    "index",
    "gap",
    "subnet_cidr",
    "broadcast",
    "hosts",
    "ip_configurations",
    "subnet_name",
    "subscription_name",
    "vnet_cidr",
    "vnet_name",
    "location",
    "nsg",
    "dns",
    "subscription_id",
)

_TERMINAL_HEADER = (
    ' "cnt",   "gap",     "subnet_cidr", "hosts",      "broadcast",      "subnet_name",'
    '     "subscription_name",           "vnet_cidr",           "vnet_name",'
    '               "location",    "nsg",       "dns",       "subscription_id"'
)


def write_report_csv(path: str | Path, rows: Sequence[ReportRow]) -> None:
    """Write the gap-annotated subnet report CSV."""

    with Path(path).open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(REPORT_COLUMNS)
        for row in rows:
            writer.writerow(
                [
                    row.index,
                    row.gap,
                    row.subnet_cidr,
                    row.broadcast,
                    row.usable_hosts,
                    row.ip_configuration_count,
                    row.subnet_name,
                    row.subscription_name,
                    row.vnet_cidr,
                    row.vnet_name,
                    row.location,
                    row.nsg,
                    row.dns,
                    row.subscription_id,
                ]
            )


def write_report_json(path: str | Path, rows: Sequence[ReportRow]) -> None:
    """Write the gap-annotated subnet report JSON."""

    data: list[dict[str, Any]] = [asdict(row) for row in rows]
    _dump_json(path, data)


def format_field(value: object, width: int) -> str:
    """Quote a value and right-align it to ``width``."""

    quoted = f'"{value}"'
    return quoted.rjust(width)


def render_terminal_rows(rows: Sequence[ReportRow]) -> list[str]:
    """Render rows as quoted, aligned text lines with a header."""

    lines = [_TERMINAL_HEADER]
    for row in rows:
        fields = [
            format_field(row.index, 6),
            format_field(row.gap, 8),
            format_field(row.subnet_cidr, 18),
            format_field(f"{row.ip_configuration_count}/{row.usable_hosts}_vms", 12),
            format_field(f"{row.broadcast}_br", 19),
            format_field(row.subnet_name, 24),
            format_field(row.subscription_name, 21),
            format_field(f"{row.vnet_cidr}_vnet", 24),
            format_field(row.vnet_name, 30),
            format_field(row.location, 16),
            format_field(row.nsg, 13),
            format_field(row.dns, 13),
            format_field(row.subscription_id, 39),
        ]
        lines.append(",".join(fields))
    return lines


def write_summary(
    path: str | Path,
    rows: Sequence[ReportRow],
    conflicts: Sequence[OverlapConflict],
    excluded_vnets: Sequence[VnetInfo],
    vnet_count: int,
) -> None:
    """Write summary report."""

    summary = _build_summary(rows, conflicts, excluded_vnets, vnet_count)
    with Path(path).open("w", encoding="utf-8") as handle:
        for key, value in summary.items():
            if isinstance(value, list):
                value = ", ".join(value)
            handle.write(f"{key}: {value}\n")


def write_summary_json(
    path: str | Path,
    rows: Sequence[ReportRow],
    conflicts: Sequence[OverlapConflict],
    excluded_vnets: Sequence[VnetInfo],
    vnet_count: int,
) -> None:
    """Write summary report JSON."""

    _dump_json(path, _build_summary(rows, conflicts, excluded_vnets, vnet_count))


def write_conflicts_json(path: str | Path, conflicts: Sequence[OverlapConflict]) -> None:
    """Write overlapping VNet CIDRs with the VNets claiming them."""

    data: list[dict[str, Any]] = [
        {
            "cidr": str(conflict.cidr),
            "vnets": [
                {
                    "vnet_name": vnet.vnet_name,
                    "vnet_cidr": format_cidr_list(vnet.vnet_cidrs),
                    "subscription_id": vnet.subscription_id,
                    "subscription_name": vnet.subscription_name,
                    "location": vnet.location,
                    "subnet_count": vnet.subnet_count,
                }
                for vnet in conflict.vnets
            ],
        }
        for conflict in conflicts
    ]
    _dump_json(path, data)


def write_vnet_summary(path: str | Path, lines: Sequence[str]) -> None:
    """Write VNet summary lines."""

    with Path(path).open("w", encoding="utf-8") as handle:
        for line in lines:
            handle.write(f"{line}\n")


def _build_summary(
    rows: Sequence[ReportRow],
    conflicts: Sequence[OverlapConflict],
    excluded_vnets: Sequence[VnetInfo],
    vnet_count: int,
) -> dict[str, Any]:
    """Count row kinds for the summary report."""

    gap_rows = [row for row in rows if row.is_gap]
    unconfigured = sum(1 for row in rows if row.subnet_cidr == UNCONFIGURED_CIDR)
    return {
        "subnets": len(rows) - len(gap_rows) - unconfigured,
        "gap_rows": len(gap_rows),
        "gap_hosts": sum(row.usable_hosts for row in gap_rows),
        "unconfigured_subnets": unconfigured,
        "vnets": vnet_count,
        "overlapping_cidrs": [str(conflict.cidr) for conflict in conflicts],
        "excluded_vnets": len(excluded_vnets),
    }


def _dump_json(path: str | Path, data: Any) -> None:
    with Path(path).open("w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2, ensure_ascii=False)
        handle.write("\n")
