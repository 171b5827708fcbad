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
"""Tests for filtering utilities."""

from subnet_summary.filters import filter_report_rows
from subnet_summary.models import ReportRow


def _row(
    vnet_name: str,
    subscription_name: str,
    subscription_id: str,
    gap: str = "Sub0",
    vnet_cidr: str = "10.1.0.0/16",
) -> ReportRow:
    return ReportRow(
        index=1,
        gap=gap,
        subnet_cidr="10.1.0.0/24",
        broadcast="10.1.0.255",
        usable_hosts=251,
        subnet_name="app",
        subscription_name=subscription_name,
        vnet_cidr=vnet_cidr,
        vnet_name=vnet_name,
        location="westeurope",
        nsg="None",
        dns="None",
        subscription_id=subscription_id,
        ip_configuration_count=0,
    )


ROWS = [
    _row("hub-vnet", "platform", "sub-1"),
    _row("spoke-web", "web", "sub-2"),
    _row("spoke-data", "data", "sub-3"),
    _row("None", "None", "None", gap="-gap-", vnet_cidr="None"),
]


def test_filter_report_rows_without_filters_returns_all() -> None:
    assert filter_report_rows(ROWS) == ROWS


def test_filter_report_rows_by_vnet_list() -> None:
    """Test filtering rows by exact VNet names."""
    filtered = filter_report_rows(ROWS, vnet_filter=["hub-vnet", "spoke-web"])

    assert [row.vnet_name for row in filtered] == ["hub-vnet", "spoke-web"]


def test_filter_report_rows_by_vnet_regex() -> None:
    filtered = filter_report_rows(ROWS, vnet_regex=r"^spoke-")

    assert [row.vnet_name for row in filtered] == ["spoke-web", "spoke-data"]


def test_filter_report_rows_regex_skips_rows_outside_vnets() -> None:
    filtered = filter_report_rows(ROWS, vnet_regex="one")

    assert filtered == []


def test_filter_report_rows_by_subscription_name_or_id() -> None:
    filtered = filter_report_rows(ROWS, subscription_filter=["web", "sub-3"])

    assert [row.vnet_name for row in filtered] == ["spoke-web", "spoke-data"]


def test_filter_report_rows_combines_filters() -> None:
    """Subscription and VNet filters must both match."""
    filtered = filter_report_rows(
        ROWS,
        vnet_filter=["hub-vnet"],
        vnet_regex="data",
        subscription_filter=["platform"],
    )

    assert [row.vnet_name for row in filtered] == ["hub-vnet"]


def test_filter_report_rows_matches_vnet_named_none() -> None:
    rows = [
        _row("None", "platform", "sub-1"),
        _row("None", "platform", "sub-1", gap="-gap-"),
        ROWS[3],
    ]

    assert filter_report_rows(rows, vnet_filter=["None"]) == rows[:2]
    assert filter_report_rows(rows, vnet_regex="^None$") == rows[:2]
