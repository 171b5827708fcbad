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
"""Overlapping VNet address space detection and filtering."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Sequence

from subnet_summary.cidr import Cidr
from subnet_summary.models import OverlapConflict, SubnetRecord, VnetInfo

_LOGGER = logging.getLogger(__name__)

# Ranges commonly reused by isolated dev/test VNets in many subscriptions.
DEFAULT_VNET_CIDRS_TO_EXCLUDE: tuple[Cidr, ...] = (
    Cidr.parse("10.0.0.0/16"),
    Cidr.parse("10.1.0.0/16"),
)


def summarize_vnets(records: Iterable[SubnetRecord]) -> list[VnetInfo]:
    """Collapse records into one VnetInfo per (vnet_name, subscription_id)."""

    first_record: dict[tuple[str, str], SubnetRecord] = {}
    counts: dict[tuple[str, str], int] = defaultdict(int)
    for record in records:
        first_record.setdefault(record.vnet_key, record)
        counts[record.vnet_key] += 1

    return [
        VnetInfo(
            vnet_name=record.vnet_name,
            vnet_cidrs=record.vnet_cidrs,
            subscription_id=record.subscription_id,
            subscription_name=record.subscription_name,
            location=record.location,
            subnet_count=counts[key],
        )
        for key, record in first_record.items()
    ]


def find_overlapping_vnets(records: Iterable[SubnetRecord]) -> list[OverlapConflict]:
    """Find VNet CIDRs advertised by more than one VNet identity."""

    claimants: dict[Cidr, list[VnetInfo]] = defaultdict(list)
    for vnet in summarize_vnets(records):
        for cidr in vnet.vnet_cidrs:
            if vnet not in claimants[cidr]:
                claimants[cidr].append(vnet)

    conflicts = [
        OverlapConflict(
            cidr=cidr,
            vnets=tuple(sorted(vnets, key=lambda item: item.vnet_key)),
        )
        for cidr, vnets in claimants.items()
        if len(vnets) > 1
    ]
    return sorted(conflicts, key=lambda conflict: conflict.cidr)


def log_overlapping_vnets(conflicts: Sequence[OverlapConflict]) -> None:
    """Log overlap conflicts as warnings."""

    if not conflicts:
        _LOGGER.info("No overlapping VNet CIDRs found.")
        return

    _LOGGER.warning("Found %s overlapping VNet CIDR(s) across different VNets:", len(conflicts))
    for conflict in conflicts:
        _LOGGER.warning("  CIDR %s is used by %s VNets:", conflict.cidr, len(conflict.vnets))
        for vnet in conflict.vnets:
            _LOGGER.warning(
                "    - VNet: %r, Subscription: %r (%s), Location: %s, Subnets: %s",
                vnet.vnet_name,
                vnet.subscription_name,
                vnet.subscription_id,
                vnet.location,
                vnet.subnet_count,
            )


def get_excluded_vnets(
    records: Iterable[SubnetRecord],
    excluded_cidrs: Sequence[Cidr] | None = None,
) -> list[VnetInfo]:
    """VNets that the exclusion filter would drop, with their subnet counts."""

    excluded = DEFAULT_VNET_CIDRS_TO_EXCLUDE if excluded_cidrs is None else excluded_cidrs
    return [
        vnet
        for vnet in summarize_vnets(records)
        if _advertises_any(vnet.vnet_cidrs, excluded)
    ]


def filter_excluded_vnet_cidrs(
    records: Iterable[SubnetRecord],
    excluded_cidrs: Sequence[Cidr] | None = None,
) -> list[SubnetRecord]:
    """Drop every subnet whose VNet advertises one of the excluded CIDRs.

    Matching is exact CIDR equality; a VNet advertising a block inside an
    excluded range is kept.
    """

    excluded = DEFAULT_VNET_CIDRS_TO_EXCLUDE if excluded_cidrs is None else excluded_cidrs

    kept: list[SubnetRecord] = []
    dropped = 0
    for record in records:
        if _advertises_any(record.vnet_cidrs, excluded):
            _LOGGER.debug(
                "Excluding subnet %r from VNet %r (CIDR matches exclusion list)",
                record.subnet_name,
                record.vnet_name,
            )
            dropped += 1
            continue
        kept.append(record)

    if dropped:
        _LOGGER.info(
            "Filtered out %s subnets belonging to excluded VNet CIDRs: %s",
            dropped,
            ", ".join(str(cidr) for cidr in excluded),
        )
    return kept


def filter_overlapping_vnets(records: Sequence[SubnetRecord]) -> list[SubnetRecord]:
    """Keep one VNet per conflicting CIDR and drop the subnets of the others.

    The kept VNet has the most subnets; ties go to the alphabetically first
    subscription name.
    """

    conflicts = find_overlapping_vnets(records)
    if not conflicts:
        return list(records)

    removed: set[tuple[str, str]] = set()
    for conflict in conflicts:
        ranked = sorted(conflict.vnets, key=_keep_rank)
        keeper = ranked[0]
        for vnet in ranked[1:]:
            _LOGGER.warning(
                "Removing VNet %r (subscription: %r) - overlaps with kept VNet %r"
                " (subscription: %r) on CIDR %s",
                vnet.vnet_name,
                vnet.subscription_name,
                keeper.vnet_name,
                keeper.subscription_name,
                conflict.cidr,
            )
            removed.add(vnet.vnet_key)

    kept = [record for record in records if record.vnet_key not in removed]
    _LOGGER.info(
        "Filtered out %s subnets from %s overlapping VNets",
        len(records) - len(kept),
        len(removed),
    )
    return kept


def _keep_rank(vnet: VnetInfo) -> tuple[int, str, str, str]:
    return -vnet.subnet_count, vnet.subscription_name, vnet.vnet_name, vnet.subscription_id


def _advertises_any(vnet_cidrs: Iterable[Cidr], excluded: Sequence[Cidr]) -> bool:
    return any(cidr in excluded for cidr in vnet_cidrs)
