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
"""Subnet inventory collection via Azure Resource Graph using the az CLI."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from subnet_summary.errors import DataSourceError, InventorySourceError
from subnet_summary.inventory import parse_inventory
from subnet_summary.models import InventoryData, SubnetRecord

_LOGGER = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
DEFAULT_PAGE_PAUSE = 0.5
MAX_OUTPUT_BYTES = 5_000_000

SUBNET_QUERY = """resources
| where type == "microsoft.network/virtualnetworks"
| mv-expand properties.subnets
| project subscription_id=subscriptionId
        ,vnet_name=name
        ,vnet_cidr=properties.addressSpace.addressPrefixes
        ,subnet_name=properties_subnets.name
        ,subnet_cidr=properties_subnets.properties.addressPrefix
        ,nsg=properties_subnets.properties.networkSecurityGroup.id
        ,location=location
        ,dns_servers=properties.dhcpOptions.dnsServers
        ,ip_configurations_count=array_length(properties_subnets.properties.ipConfigurations)
| join kind=leftouter (
    resourcecontainers
        | where type == "microsoft.resources/subscriptions"
        | project subscription_id=subscriptionId, subscription_name=name
    ) on subscription_id
| project subscription_id, subscription_name, vnet_name, vnet_cidr, subnet_name, subnet_cidr,
    nsg, location, dns_servers, ip_configurations_count
| sort by vnet_name asc"""


@dataclass(frozen=True)
class GraphPage:
    """One page of Resource Graph results."""

    records: tuple[SubnetRecord, ...]
    skip_token: str | None
    total_records: int | None
    count: int


def fetch_subnet_inventory(
    az_cmd: str = "az",
    page_size: int = DEFAULT_PAGE_SIZE,
    pause_seconds: float = DEFAULT_PAGE_PAUSE,
) -> InventoryData:
    """Fetch every subnet, following skip tokens until the last page."""

    if not _command_exists(az_cmd):
        raise InventorySourceError("AZ_COMMAND_MISSING", f"az command not found: {az_cmd}")

    records: list[SubnetRecord] = []
    total_records: int | None = None
    count = 0
    skip_token: str | None = None
    block = 0
    while True:
        page = _fetch_page(az_cmd, page_size, skip_token, block)
        records.extend(page.records)
        count += page.count
        if page.total_records is not None:
            total_records = page.total_records
        _LOGGER.info(
            "got block#%2d record_count=+%3d => %3d skip_token=%r",
            block,
            page.count,
            count,
            page.skip_token,
        )
        if page.skip_token is None:
            break
        if page.skip_token == skip_token:
            raise DataSourceError(
                f"skip token repeated after block {block}; pagination would not terminate"
            )
        skip_token = page.skip_token
        block += 1
        if pause_seconds > 0:
            time.sleep(pause_seconds)

    if total_records is not None and total_records != len(records):
        _LOGGER.warning(
            "Resource Graph reported %s records but %s were returned",
            total_records,
            len(records),
        )
    _LOGGER.info("Got %s records in %s block(s) from az graph query", len(records), block + 1)
    return InventoryData(records=tuple(records), total_records=total_records, count=count)


def _fetch_page(az_cmd: str, page_size: int, skip_token: str | None, block: int) -> GraphPage:
    """Run one query page and stamp its records with their provenance."""

    command = _build_graph_command(az_cmd, page_size, skip_token)
    payload = _run_az_json(command)
    inventory = parse_inventory(payload, source=f"az graph block {block}")
    records = tuple(
        replace(record, source_index=index, source_block=block)
        for index, record in enumerate(inventory.records)
    )
    token = payload.get("skip_token") or payload.get("skipToken")
    return GraphPage(
        records=records,
        skip_token=str(token) if token else None,
        total_records=inventory.total_records,
        count=inventory.count,
    )


def _build_graph_command(az_cmd: str, page_size: int, skip_token: str | None) -> list[str]:
    """Build an az graph query command list."""

    command = [az_cmd, "graph", "query", "--first", str(page_size)]
    if skip_token:
        command.extend(["--skip-token", skip_token])
    command.extend(["-q", SUBNET_QUERY, "--output", "json"])
    return command


def _run_az_json(command: list[str]) -> dict[str, Any]:
    """Run az and parse its JSON stdout."""

    _LOGGER.debug("Running az: %s", " ".join(command[:5]))
    try:
        result = subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise InventorySourceError("AZ_COMMAND_FAILED", str(exc)) from exc

    if result.returncode != 0:
        combined_output = "\n".join([result.stdout, result.stderr]).strip()
        error_code = _classify_az_error(combined_output)
        _LOGGER.error("az graph query failed (%s)", error_code)
        raise InventorySourceError(error_code, result.stderr.strip() or "<empty>")

    if len(result.stdout) > MAX_OUTPUT_BYTES:
        raise InventorySourceError(
            "AZ_OUTPUT_TOO_LARGE", f"{len(result.stdout)} bytes from az graph query"
        )
    try:
        payload = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise InventorySourceError("AZ_OUTPUT_INVALID", f"az returned invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise InventorySourceError("AZ_OUTPUT_INVALID", "az returned a non-object JSON document")
    return payload


def _command_exists(command: str) -> bool:
    """Check if a command exists on PATH."""

    return Path(command).is_file() or bool(shutil.which(command))


def _classify_az_error(output: str) -> str:
    """Classify az error output into a stable error code."""

    lowered = output.lower()
    auth_markers = (
        "az login",
        "authorizationfailed",
        "expired",
        "no subscription found",
        "interactive authentication is needed",
    )
    if any(marker in lowered for marker in auth_markers):
        return "AZ_AUTH_REQUIRED"

    extension_markers = (
        "resource-graph",
        "misspelled or not recognized",
        "is not in the 'az' command group",
    )
    if any(marker in lowered for marker in extension_markers):
        return "AZ_EXTENSION_MISSING"

    throttle_markers = (
        "throttl",
        "too many requests",
        "ratelimit",
    )
    if any(marker in lowered for marker in throttle_markers):
        return "AZ_THROTTLED"

    return "AZ_UNKNOWN_ERROR"
