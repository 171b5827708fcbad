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
"""Subnet inventory cache parsing and integrity checks."""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Sequence

from subnet_summary.cidr import Cidr
from subnet_summary.errors import DataSourceError
from subnet_summary.models import InventoryData, SubnetRecord

_LOGGER = logging.getLogger(__name__)

_RECORD_REQUIRED_KEYS = (
    "vnet_name",
    "vnet_cidr",
    "subnet_name",
    "location",
    "subscription_id",
    "subscription_name",
)


def default_cache_path(today: date | None = None) -> Path:
    """Cache file name for the given day."""

    day = today or date.today()
    return Path(f"subnet_cache_{day:%Y-%m-%d}.json")


def read_subnet_cache(
    cache_file: str | Path | None,
    fetch: Callable[[], InventoryData],
    refresh: bool = False,
) -> InventoryData:
    """Read inventory from a cache file, fetching and caching it when absent."""

    if cache_file is None:
        path = default_cache_path()
    else:
        path = Path(cache_file)
        if not path.exists() and not refresh:
            raise ValueError(f"Cache file does not exist: {path}")

    if path.exists() and not refresh:
        _LOGGER.info("Reading from cache file: %s", path)
        return load_subnet_cache(path)

    if not refresh:
        _LOGGER.warning("Cache file not found: %s", path)
    data = fetch()
    _LOGGER.warning("Writing data to cache file: %s", path)
    save_subnet_cache(path, data)
    return data


def load_subnet_cache(path: str | Path) -> InventoryData:
    """Load a subnet cache JSON file."""

    with Path(path).open(encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path} is not valid JSON: {exc}") from exc
    return parse_inventory(payload, source=str(path))


def save_subnet_cache(path: str | Path, data: InventoryData) -> None:
    """Write inventory data in the cache JSON format."""

    payload = {
        "data": [record_to_dict(record) for record in data.records],
        "skip_token": None,
        "total_records": data.total_records,
        "count": data.count,
    }
    with Path(path).open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=False)
        handle.write("\n")


def parse_inventory(payload: Any, source: str = "inventory") -> InventoryData:
    """Parse a cache or page payload of the form ``{"data": [...], ...}``."""

    if not isinstance(payload, Mapping):
        raise ValueError(f"{source} must be a JSON object")
    raw_records = payload.get("data")
    if not isinstance(raw_records, list):
        raise ValueError(f"{source} is missing the data list")

    records = tuple(
        parse_subnet_record(raw, source=f"{source} record {index}")
        for index, raw in enumerate(raw_records)
    )
    total_records = payload.get("total_records")
    count = payload.get("count")
    return InventoryData(
        records=records,
        total_records=total_records if isinstance(total_records, int) else None,
        count=count if isinstance(count, int) else len(records),
    )


def parse_subnet_record(raw: Any, source: str = "record") -> SubnetRecord:
    """Build a subnet record from its JSON form."""

    if not isinstance(raw, Mapping):
        raise ValueError(f"{source} must be a JSON object")
    _validate_keys(source, raw, _RECORD_REQUIRED_KEYS)

    vnet_cidr_raw = raw.get("vnet_cidr")
    if not isinstance(vnet_cidr_raw, list):
        raise ValueError(f"{source} has non-list vnet_cidr")
    subnet_cidr_raw = raw.get("subnet_cidr")
    dns_raw = raw.get("dns_servers")
    if dns_raw is not None and not isinstance(dns_raw, list):
        raise ValueError(f"{source} has non-list dns_servers")
    ip_configs = raw.get("ip_configurations_count")
    if ip_configs is not None and not isinstance(ip_configs, int):
        raise ValueError(f"{source} has non-integer ip_configurations_count")

    return SubnetRecord(
        vnet_name=_text(raw, "vnet_name"),
        vnet_cidrs=tuple(Cidr.parse(str(text)) for text in vnet_cidr_raw),
        subnet_name=_text(raw, "subnet_name"),
        subnet_cidr=Cidr.parse(str(subnet_cidr_raw)) if subnet_cidr_raw else None,
        security_group_ref=raw.get("nsg") or None,
        location=_text(raw, "location"),
        dns_servers=tuple(str(server) for server in dns_raw) if dns_raw is not None else None,
        subscription_id=_text(raw, "subscription_id"),
        subscription_name=_text(raw, "subscription_name"),
        ip_configuration_count=ip_configs,
        source_index=int(raw.get("src_index") or 0),
        source_block=int(raw.get("block_id") or 0),
    )


def record_to_dict(record: SubnetRecord) -> dict[str, Any]:
    """Serialize a subnet record to its JSON form."""

    return {
        "vnet_name": record.vnet_name,
        "vnet_cidr": [str(cidr) for cidr in record.vnet_cidrs],
        "subnet_name": record.subnet_name,
        "subnet_cidr": str(record.subnet_cidr) if record.subnet_cidr else None,
        "nsg": record.security_group_ref,
        "location": record.location,
        "dns_servers": list(record.dns_servers) if record.dns_servers is not None else None,
        "subscription_id": record.subscription_id,
        "subscription_name": record.subscription_name,
        "ip_configurations_count": record.ip_configuration_count,
        "src_index": record.source_index,
        "block_id": record.source_block,
    }


def sort_by_cidr(records: Iterable[SubnetRecord]) -> list[SubnetRecord]:
    """Stable ascending sort by subnet CIDR; unconfigured subnets trail."""

    return sorted(
        records,
        key=lambda record: (
            record.subnet_cidr is None,
            record.subnet_cidr or Cidr(0, 0),
        ),
    )


def check_source_provenance(records: Iterable[SubnetRecord]) -> None:
    """Fail when a page position was delivered twice."""

    seen: set[tuple[int, int]] = set()
    for record in records:
        key = (record.source_index, record.source_block)
        if key in seen:
            raise DataSourceError(
                f"duplicate source index {record.source_index} in block {record.source_block}"
                f" (subnet {record.subnet_name!r})"
            )
        seen.add(key)


def check_for_duplicate_subnets(records: Iterable[SubnetRecord]) -> None:
    """Fail when a (CIDR, subscription) pair survives de-duplication twice."""

    seen: set[tuple[Cidr | None, str]] = set()
    for record in records:
        key = (record.subnet_cidr, record.subscription_id)
        if key in seen:
            raise DataSourceError(
                f"duplicate subnet {record.subnet_cidr} in subscription"
                f" {record.subscription_id} ({record.subnet_name!r})"
            )
        seen.add(key)


def check_vnet_cidr_consistency(records: Sequence[SubnetRecord]) -> list[tuple[str, str]]:
    """Return VNet identities whose copied CIDR lists disagree.

    Divergent copies are only reported; no copy is preferred.
    """

    first_seen: dict[tuple[str, str], tuple[Cidr, ...]] = {}
    divergent: list[tuple[str, str]] = []
    for record in records:
        expected = first_seen.setdefault(record.vnet_key, record.vnet_cidrs)
        if expected != record.vnet_cidrs and record.vnet_key not in divergent:
            _LOGGER.warning(
                "VNet %r in subscription %s has divergent CIDR lists: %s vs %s",
                record.vnet_name,
                record.subscription_id,
                ",".join(str(cidr) for cidr in expected),
                ",".join(str(cidr) for cidr in record.vnet_cidrs),
            )
            divergent.append(record.vnet_key)
    return divergent


def _validate_keys(source: str, raw: Mapping[str, Any], required: tuple[str, ...]) -> None:
    """Ensure required keys are present."""

    missing = [name for name in required if name not in raw]
    if missing:
        raise ValueError(f"{source} is missing required keys: {', '.join(missing)}")


def _text(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    return "" if value is None else str(value)
