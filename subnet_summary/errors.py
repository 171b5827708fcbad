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
"""Error types raised by subnet-summary."""

from __future__ import annotations


class SubnetSummaryError(Exception):
    """Base class for all subnet-summary errors."""


class CidrError(SubnetSummaryError, ValueError):
    """Malformed CIDR text or impossible CIDR arithmetic."""


class InvalidFormat(CidrError):
    """CIDR text is not exactly ``address/prefix``."""


class InvalidAddress(CidrError):
    """Address part is not a dotted-quad IPv4 address."""


class InvalidPrefixLength(CidrError):
    """Prefix length is not an integer in 0..32."""


class PrefixTooLong(CidrError):
    """Arithmetic was requested for a prefix length above 32."""


class BlockTooSmall(CidrError):
    """Block reserves more addresses than it holds."""


class AddressOverflow(CidrError):
    """Advancing past the block would leave the IPv4 address space."""


class DataSourceError(SubnetSummaryError):
    """Inventory data violates its contract (duplicates, ordering)."""


class GapArithmeticError(SubnetSummaryError):
    """A gap block cannot be placed without overlapping allocated space."""


class InventorySourceError(SubnetSummaryError):
    """The inventory CLI failed or returned unusable output."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
