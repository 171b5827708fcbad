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
"""VNet grouping of subnet records."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Sequence

from subnet_summary.models import SubnetRecord, Vnet, VnetInfo
from subnet_summary.normalize import format_cidr_list


def group_vnets(records: Iterable[SubnetRecord]) -> list[Vnet]:
    """Group subnets by (vnet_name, subscription_id).

    VNet attributes come from the first subnet seen for each identity.
    """

    grouped: dict[tuple[str, str], list[SubnetRecord]] = defaultdict(list)
    for record in records:
        grouped[record.vnet_key].append(record)

    vnets = [
        Vnet(
            vnet_name=subnets[0].vnet_name,
            vnet_cidrs=subnets[0].vnet_cidrs,
            location=subnets[0].location,
            subscription_id=subnets[0].subscription_id,
            subscription_name=subnets[0].subscription_name,
            subnets=tuple(subnets),
        )
        for subnets in grouped.values()
    ]
    return sorted(vnets, key=lambda vnet: (vnet.vnet_name, vnet.subscription_name))


def format_vnet_summary(
    vnets: Sequence[Vnet],
    excluded_vnets: Sequence[VnetInfo] | None = None,
) -> list[str]:
    """Build one summary line per VNet, followed by excluded VNets."""

    lines = [
        f"VNET: '{vnet.vnet_name}' '{vnet.subscription_name}' - "
        f"{format_cidr_list(vnet.vnet_cidrs, separator=', ')}"
        for vnet in vnets
    ]
    excluded = sorted(
        excluded_vnets or (), key=lambda item: (item.vnet_name, item.subscription_name)
    )
    for info in excluded:
        lines.append(
            f"VNET: '{info.vnet_name}' '{info.subscription_name}' - "
            f"{format_cidr_list(info.vnet_cidrs, separator=', ')}"
            f" [EXCLUDED - {info.subnet_count} subnet(s)]"
        )
    return lines
