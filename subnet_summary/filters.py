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
"""Filtering utilities for report rows."""

from __future__ import annotations

import re
from typing import Sequence

from subnet_summary.models import ReportRow


def filter_report_rows(
    rows: list[ReportRow],
    vnet_filter: Sequence[str] | None = None,
    vnet_regex: str | None = None,
    subscription_filter: Sequence[str] | None = None,
) -> list[ReportRow]:
    """Filter report rows by VNet name and/or subscription.

    Gap rows outside every VNet carry no VNet name, so any VNet filter drops
    them.

    Args:
        rows: Report rows to filter
        vnet_filter: List of exact VNet names to include
        vnet_regex: Regular expression pattern for VNet names
        subscription_filter: Subscription names or IDs to include

    Returns:
        Filtered list of rows, order preserved
    """

    if not vnet_filter and not vnet_regex and not subscription_filter:
        return rows

    filtered: list[ReportRow] = []
    pattern = re.compile(vnet_regex) if vnet_regex else None

    for row in rows:
        # Check subscription filter first (most restrictive)
        if subscription_filter and not (
            row.subscription_name in subscription_filter
            or row.subscription_id in subscription_filter
        ):
            continue

        if vnet_filter or pattern:
            if row.outside_vnet:
                continue
            vnet_match = bool(vnet_filter) and row.vnet_name in vnet_filter
            if pattern and not vnet_match:
                vnet_match = bool(pattern.search(row.vnet_name))
            if not vnet_match:
                continue

        filtered.append(row)

    return filtered
