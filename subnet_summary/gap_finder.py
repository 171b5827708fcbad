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
"""Gap finding between allocated subnets.

Records are walked in ascending CIDR order. Every unallocated range before a
subnet is reported as one or more gap blocks, each the biggest block that is
aligned at its start address and ends below the next subnet.
"""

from __future__ import annotations

import logging
from typing import Iterable

from subnet_summary.cidr import (
    MAX_PREFIX_LENGTH,
    Cidr,
    alignment_mask,
    broadcast_address,
    format_address,
    next_block_after,
    parse_address,
)
from subnet_summary.errors import DataSourceError, GapArithmeticError, PrefixTooLong
from subnet_summary.models import (
    GAP_TAG,
    NONE_VALUE,
    UNCONFIGURED_CIDR,
    UNUSED_DNS,
    UNUSED_NSG,
    ReportRow,
    SubnetRecord,
)
from subnet_summary.normalize import format_cidr_list, format_dns_servers, short_resource_name

_LOGGER = logging.getLogger(__name__)

DEFAULT_GAP_MASK = 16
DEFAULT_START_ADDRESS = "10.0.0.0"
INITIAL_VNET_CIDR = Cidr.parse("0.0.0.0/24")

# Subnets of /28 or bigger are stepped past in /28 units; smaller subnets
# advance by their own size.
ADVANCE_BOUNDARY_MASK = 28


def find_largest_fitting_block(start_address: int, requested_mask: int, below: Cidr) -> int:
    """Return the smallest mask whose block at ``start_address`` ends before ``below``.

    The mask is never smaller than ``requested_mask`` nor than the alignment
    of ``start_address``, so the block always starts on a network address.
    """

    if requested_mask > MAX_PREFIX_LENGTH:
        raise PrefixTooLong(f"requested mask /{requested_mask} exceeds /{MAX_PREFIX_LENGTH}")

    mask = max(requested_mask, alignment_mask(start_address))
    limit = below.network_address()
    while broadcast_address(start_address, mask) >= limit:
        mask += 1
        if mask > MAX_PREFIX_LENGTH:
            raise GapArithmeticError(
                f"no block at {format_address(start_address)} fits below {below}"
            )
    return mask


def process_subnet_row(
    record: SubnetRecord,
    index: int,
    next_address: int,
    previous_vnet_cidr: Cidr,
    default_mask: int,
) -> tuple[int, Cidr, list[ReportRow]]:
    """Emit gap rows before ``record`` and the row for ``record`` itself.

    Returns the next expected address, the VNet CIDR of this record and the
    rows produced.
    """

    if record.subnet_cidr is None:
        _LOGGER.warning("subnet_cidr is None for subnet_name: %s", record.subnet_name)
        return next_address, previous_vnet_cidr, [_unconfigured_row(record, index)]

    subnet_cidr = record.subnet_cidr
    subnet_start = subnet_cidr.network_address()
    if next_address > subnet_start:
        raise DataSourceError(
            f"next address {format_address(next_address)} is past subnet {subnet_cidr}"
            f" ({record.subnet_name!r}); records are not in ascending order or overlap"
        )

    same_vnet = bool(record.vnet_cidrs) and previous_vnet_cidr == record.vnet_cidrs[0]
    rows: list[ReportRow] = []
    while next_address < subnet_start:
        mask = find_largest_fitting_block(next_address, default_mask, subnet_cidr)
        block = Cidr(next_address, mask)
        enclosing = _enclosing_vnet_cidr(record, next_address)
        if same_vnet and enclosing and block.broadcast_address() > enclosing.broadcast_address():
            raise GapArithmeticError(
                f"gap {block} reaches past VNet {enclosing} of {record.vnet_name!r}"
                f" before subnet {subnet_cidr}"
            )
        rows.append(_gap_row(record, block, in_vnet=enclosing is not None))
        next_address = next_block_after(block).address

    if record.vnet_cidrs:
        previous_vnet_cidr = record.vnet_cidrs[0]
    rows.append(_subnet_row(record, index, subnet_cidr))

    advance_mask = max(subnet_cidr.prefix_length, ADVANCE_BOUNDARY_MASK)
    next_address = next_block_after(subnet_cidr, advance_mask).address
    return next_address, previous_vnet_cidr, rows


def build_report(
    records: Iterable[SubnetRecord],
    default_mask: int = DEFAULT_GAP_MASK,
    start_address: int | str = DEFAULT_START_ADDRESS,
) -> list[ReportRow]:
    """Build the gap-annotated report for records sorted by subnet CIDR."""

    next_address = parse_address(start_address) if isinstance(start_address, str) else start_address
    previous_vnet_cidr = INITIAL_VNET_CIDR
    _LOGGER.info(
        "Adding gap subnets with mask /%s from %s", default_mask, format_address(next_address)
    )

    report: list[ReportRow] = []
    for index, record in enumerate(records):
        next_address, previous_vnet_cidr, rows = process_subnet_row(
            record,
            index,
            next_address,
            previous_vnet_cidr,
            default_mask,
        )
        report.extend(rows)
    return report


def _enclosing_vnet_cidr(record: SubnetRecord, address: int) -> Cidr | None:
    for cidr in record.vnet_cidrs:
        if cidr.contains_address(address):
            return cidr
    return None


def _gap_row(record: SubnetRecord, block: Cidr, in_vnet: bool) -> ReportRow:
    """Row for an unallocated block; VNet fields only when the gap is inside it."""

    return ReportRow(
        index=0,
        gap=GAP_TAG,
        subnet_cidr=str(block),
        broadcast=format_address(block.broadcast_address()),
        usable_hosts=block.usable_host_count(),
        subnet_name=NONE_VALUE,
        subscription_name=record.subscription_name if in_vnet else NONE_VALUE,
        vnet_cidr=format_cidr_list(record.vnet_cidrs) if in_vnet else NONE_VALUE,
        vnet_name=record.vnet_name if in_vnet else NONE_VALUE,
        location=NONE_VALUE,
        nsg=UNUSED_NSG,
        dns=UNUSED_DNS,
        subscription_id=record.subscription_id if in_vnet else NONE_VALUE,
        ip_configuration_count=0,
    )


def _subnet_row(record: SubnetRecord, index: int, subnet_cidr: Cidr) -> ReportRow:
    return ReportRow(
        index=index + 1,
        gap=f"Sub{record.source_index}",
        subnet_cidr=str(subnet_cidr),
        broadcast=format_address(subnet_cidr.broadcast_address()),
        usable_hosts=subnet_cidr.usable_host_count(),
        subnet_name=record.subnet_name,
        subscription_name=record.subscription_name,
        vnet_cidr=format_cidr_list(record.vnet_cidrs),
        vnet_name=record.vnet_name,
        location=record.location,
        nsg=short_resource_name(record.security_group_ref),
        dns=format_dns_servers(record.dns_servers),
        subscription_id=record.subscription_id,
        ip_configuration_count=record.ip_configuration_count or 0,
    )


def _unconfigured_row(record: SubnetRecord, index: int) -> ReportRow:
    return ReportRow(
        index=index + 1,
        gap=NONE_VALUE,
        subnet_cidr=UNCONFIGURED_CIDR,
        broadcast=UNCONFIGURED_CIDR,
        usable_hosts=0,
        subnet_name=record.subnet_name,
        subscription_name=record.subscription_name,
        vnet_cidr=format_cidr_list(record.vnet_cidrs),
        vnet_name=record.vnet_name,
        location=record.location,
        nsg=short_resource_name(record.security_group_ref),
        dns=format_dns_servers(record.dns_servers),
        subscription_id=record.subscription_id,
        ip_configuration_count=record.ip_configuration_count or 0,
    )
