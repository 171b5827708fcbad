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
"""Data models for subnet-summary."""

from __future__ import annotations

from dataclasses import dataclass, field

from subnet_summary.cidr import Cidr

NONE_VALUE = "None"
GAP_TAG = "-gap-"
UNUSED_NSG = "Unused_nsg"
UNUSED_DNS = "Unused_dns"
UNCONFIGURED_CIDR = "none"


@dataclass(frozen=True)
class SubnetRecord:
    """One subnet as reported by the inventory source."""

    vnet_name: str
    vnet_cidrs: tuple[Cidr, ...]
    subnet_name: str
    subnet_cidr: Cidr | None
    location: str
    subscription_id: str
    subscription_name: str
    security_group_ref: str | None = None
    dns_servers: tuple[str, ...] | None = None
    ip_configuration_count: int | None = None
    source_index: int = 0
    source_block: int = 0

    @property
    def vnet_key(self) -> tuple[str, str]:
        """VNet identity; names recur across subscriptions."""

        return self.vnet_name, self.subscription_id


@dataclass(frozen=True)
class InventoryData:
    """Records from one inventory fetch or cache file."""

    records: tuple[SubnetRecord, ...]
    total_records: int | None = None
    count: int = 0


@dataclass(frozen=True)
class VnetInfo:
    """VNet identity with the number of its subnets in a record set."""

    vnet_name: str
    vnet_cidrs: tuple[Cidr, ...]
    subscription_id: str
    subscription_name: str
    location: str
    subnet_count: int

    @property
    def vnet_key(self) -> tuple[str, str]:
        return self.vnet_name, self.subscription_id


@dataclass(frozen=True)
class OverlapConflict:
    """A VNet CIDR advertised by more than one VNet."""

    cidr: Cidr
    vnets: tuple[VnetInfo, ...]


@dataclass(frozen=True)
class Vnet:
    """VNet with owned copies of its subnet records."""

    vnet_name: str
    vnet_cidrs: tuple[Cidr, ...]
    location: str
    subscription_id: str
    subscription_name: str
    subnets: tuple[SubnetRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ReportRow:
    """One report line: a real subnet, a gap, or an unconfigured subnet."""

    index: int
    gap: str
    subnet_cidr: str
    broadcast: str
    usable_hosts: int
    subnet_name: str
    subscription_name: str
    vnet_cidr: str
    vnet_name: str
    location: str
    nsg: str
    dns: str
    subscription_id: str
    ip_configuration_count: int

    @property
    def is_gap(self) -> bool:
        return self.gap == GAP_TAG

    @property
    def outside_vnet(self) -> bool:
        """Gap row whose block lies in none of the VNet CIDRs."""

        return self.is_gap and self.vnet_cidr == NONE_VALUE
