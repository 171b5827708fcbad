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
"""Tests for subnet cache parsing and integrity checks."""

import json
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from subnet_summary.cidr import Cidr
from subnet_summary.errors import DataSourceError, InvalidPrefixLength
from subnet_summary.inventory import (
    check_for_duplicate_subnets,
    check_source_provenance,
    check_vnet_cidr_consistency,
    default_cache_path,
    load_subnet_cache,
    parse_subnet_record,
    read_subnet_cache,
    save_subnet_cache,
    sort_by_cidr,
)
from subnet_summary.models import InventoryData, SubnetRecord


def _raw_record(**overrides: Any) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "vnet_name": "vnet-core",
        "vnet_cidr": ["10.1.0.0/16"],
        "subnet_name": "app",
        "subnet_cidr": "10.1.1.0/24",
        "nsg": None,
        "location": "westeurope",
        "dns_servers": None,
        "subscription_id": "sub-1",
        "subscription_name": "platform",
        "ip_configurations_count": 4,
        "src_index": 0,
        "block_id": 0,
    }
    raw.update(overrides)
    return raw


def _record(subnet_cidr: str | None, source_index: int = 0, **overrides: Any) -> SubnetRecord:
    values: dict[str, Any] = {
        "vnet_name": "vnet-core",
        "vnet_cidrs": (Cidr.parse("10.1.0.0/16"),),
        "subnet_name": "app",
        "subnet_cidr": Cidr.parse(subnet_cidr) if subnet_cidr else None,
        "location": "westeurope",
        "subscription_id": "sub-1",
        "subscription_name": "platform",
        "source_index": source_index,
    }
    values.update(overrides)
    return SubnetRecord(**values)


def _write_cache(path: Path, records: list[dict[str, Any]]) -> None:
    payload = {"data": records, "skip_token": None, "total_records": len(records), "count": 1}
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_load_subnet_cache_parses_records(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    _write_cache(
        cache_path,
        [
            _raw_record(
                vnet_cidr=["10.1.0.0/16", "10.2.0.0/16"],
                dns_servers=["10.1.0.4"],
                nsg="/subscriptions/sub-1/networkSecurityGroups/app-nsg",
                src_index=7,
                block_id=2,
            ),
            _raw_record(subnet_name="pending", subnet_cidr=None, src_index=8, block_id=2),
        ],
    )

    inventory = load_subnet_cache(cache_path)

    first, second = inventory.records
    assert first.vnet_cidrs == (Cidr.parse("10.1.0.0/16"), Cidr.parse("10.2.0.0/16"))
    assert first.subnet_cidr == Cidr.parse("10.1.1.0/24")
    assert first.dns_servers == ("10.1.0.4",)
    assert first.ip_configuration_count == 4
    assert (first.source_index, first.source_block) == (7, 2)
    assert second.subnet_cidr is None
    assert inventory.total_records == 2
    assert inventory.count == 1


def test_load_subnet_cache_rejects_invalid_json(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValueError, match="not valid JSON"):
        load_subnet_cache(cache_path)


def test_parse_subnet_record_requires_keys() -> None:
    raw = _raw_record()
    del raw["subscription_name"]

    with pytest.raises(ValueError, match="missing required keys: subscription_name"):
        parse_subnet_record(raw)


def test_parse_subnet_record_validates_types() -> None:
    with pytest.raises(ValueError, match="non-list vnet_cidr"):
        parse_subnet_record(_raw_record(vnet_cidr="10.1.0.0/16"))
    with pytest.raises(ValueError, match="non-integer ip_configurations_count"):
        parse_subnet_record(_raw_record(ip_configurations_count="4"))
    with pytest.raises(InvalidPrefixLength):
        parse_subnet_record(_raw_record(subnet_cidr="10.1.1.0/abc"))


def test_save_subnet_cache_writes_loadable_file(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    data = InventoryData(
        records=(_record("10.1.1.0/24", dns_servers=("10.1.0.4",)),),
        total_records=1,
        count=1,
    )

    save_subnet_cache(cache_path, data)

    payload = json.loads(cache_path.read_text(encoding="utf-8"))
    assert payload["data"][0]["vnet_cidr"] == ["10.1.0.0/16"]
    assert payload["data"][0]["src_index"] == 0
    assert load_subnet_cache(cache_path).records == data.records


def test_default_cache_path_uses_date() -> None:
    assert default_cache_path(date(2024, 3, 5)) == Path("subnet_cache_2024-03-05.json")


def test_read_subnet_cache_requires_existing_explicit_file(tmp_path: Path) -> None:
    def fetch() -> InventoryData:
        raise AssertionError("fetch must not be called")

    with pytest.raises(ValueError, match="Cache file does not exist"):
        read_subnet_cache(tmp_path / "missing.json", fetch=fetch)


def test_read_subnet_cache_prefers_existing_file(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    _write_cache(cache_path, [_raw_record()])

    def fetch() -> InventoryData:
        raise AssertionError("fetch must not be called")

    inventory = read_subnet_cache(cache_path, fetch=fetch)

    assert len(inventory.records) == 1


def test_read_subnet_cache_refresh_fetches_and_writes(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    fetched = InventoryData(records=(_record("10.1.2.0/24"),), total_records=1, count=1)

    inventory = read_subnet_cache(cache_path, fetch=lambda: fetched, refresh=True)

    assert inventory == fetched
    assert load_subnet_cache(cache_path).records == fetched.records


def test_sort_by_cidr_puts_unconfigured_last() -> None:
    records = [
        _record(None, subnet_name="pending"),
        _record("10.1.2.0/24"),
        _record("10.1.0.0/16"),
        _record("10.1.0.0/24"),
    ]

    ordered = sort_by_cidr(records)

    assert [str(record.subnet_cidr) for record in ordered] == [
        "10.1.0.0/16",
        "10.1.0.0/24",
        "10.1.2.0/24",
        "None",
    ]


def test_check_source_provenance_rejects_repeated_index() -> None:
    records = [
        _record("10.1.0.0/24", source_index=3),
        _record("10.1.1.0/24", source_index=3, source_block=1),
        _record("10.1.2.0/24", source_index=3),
    ]

    with pytest.raises(DataSourceError, match="duplicate source index 3 in block 0"):
        check_source_provenance(records)


def test_check_for_duplicate_subnets_rejects_repeated_key() -> None:
    records = [_record("10.1.0.0/24", source_index=0), _record("10.1.0.0/24", source_index=1)]

    with pytest.raises(DataSourceError, match="duplicate subnet 10.1.0.0/24"):
        check_for_duplicate_subnets(records)

    check_for_duplicate_subnets([records[0], _record("10.1.0.0/24", subscription_id="sub-2")])


def test_check_vnet_cidr_consistency_flags_divergent_copies() -> None:
    records = [
        _record("10.1.0.0/24", source_index=0),
        _record("10.1.1.0/24", source_index=1, vnet_cidrs=(Cidr.parse("10.1.0.0/20"),)),
        _record("10.1.2.0/24", source_index=2, vnet_cidrs=(Cidr.parse("10.1.0.0/20"),)),
    ]

    assert check_vnet_cidr_consistency(records) == [("vnet-core", "sub-1")]
    assert check_vnet_cidr_consistency(records[:1]) == []
