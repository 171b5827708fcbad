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
"""Tests for CIDR parsing and address arithmetic."""

import pytest

from subnet_summary.cidr import (
    Cidr,
    alignment_mask,
    format_address,
    next_block_after,
    parse_address,
    usable_host_count,
)
from subnet_summary.errors import (
    AddressOverflow,
    BlockTooSmall,
    CidrError,
    InvalidAddress,
    InvalidFormat,
    InvalidPrefixLength,
    PrefixTooLong,
)


def test_parse_keeps_address_as_given() -> None:
    cidr = Cidr.parse(" 10.1.2.3/24 ")

    assert str(cidr) == "10.1.2.3/24"
    assert format_address(cidr.network_address()) == "10.1.2.0"
    assert format_address(cidr.broadcast_address()) == "10.1.2.255"
    assert cidr != Cidr.parse("10.1.2.0/24")


@pytest.mark.parametrize(
    ("text", "error"),
    [
        ("10.0.0.0", InvalidFormat),
        ("10.0.0.0/24/1", InvalidFormat),
        ("10.0.0.256/24", InvalidAddress),
        ("10.0.0/24", InvalidAddress),
        ("10.0.0.0/33", InvalidPrefixLength),
        ("10.0.0.0/x", InvalidPrefixLength),
        ("10.0.0.0/-1", InvalidPrefixLength),
        ("10.0.0.0/", InvalidPrefixLength),
    ],
)
def test_parse_rejects_malformed_text(text: str, error: type[CidrError]) -> None:
    with pytest.raises(error):
        Cidr.parse(text)


def test_cidr_errors_are_value_errors() -> None:
    with pytest.raises(ValueError, match="expected address/prefix"):
        Cidr.parse("not-a-cidr")


def test_ordering_is_by_address_then_prefix() -> None:
    cidrs = [
        Cidr.parse("10.0.1.0/24"),
        Cidr.parse("10.0.0.0/24"),
        Cidr.parse("10.0.0.0/16"),
        Cidr.parse("9.255.0.0/16"),
    ]

    assert [str(cidr) for cidr in sorted(cidrs)] == [
        "9.255.0.0/16",
        "10.0.0.0/16",
        "10.0.0.0/24",
        "10.0.1.0/24",
    ]


def test_contains_checks_whole_block() -> None:
    vnet = Cidr.parse("10.0.0.0/16")

    assert vnet.contains(Cidr.parse("10.0.5.0/24"))
    assert not Cidr.parse("10.0.5.0/24").contains(vnet)
    assert vnet.contains_address(parse_address("10.0.255.255"))
    assert not vnet.contains_address(parse_address("10.1.0.0"))


@pytest.mark.parametrize(
    ("prefix_length", "hosts"),
    [
        (0, 4294967291),
        (8, 16777211),
        (16, 65531),
        (24, 251),
        (25, 123),
        (26, 59),
        (27, 27),
        (28, 11),
        (29, 3),
    ],
)
def test_usable_host_count_reserves_five_addresses(prefix_length: int, hosts: int) -> None:
    assert usable_host_count(prefix_length) == hosts


def test_usable_host_count_rejects_tiny_blocks() -> None:
    with pytest.raises(BlockTooSmall):
        usable_host_count(30)
    with pytest.raises(BlockTooSmall):
        Cidr.parse("10.0.0.0/32").usable_host_count()
    with pytest.raises(PrefixTooLong):
        usable_host_count(33)


def test_alignment_mask_counts_trailing_zero_bits() -> None:
    assert alignment_mask(parse_address("10.6.2.80")) == 28
    assert alignment_mask(parse_address("10.0.0.0")) == 7
    assert alignment_mask(parse_address("10.0.1.0")) == 24
    assert alignment_mask(parse_address("0.0.0.1")) == 32
    assert alignment_mask(0) == 0


@pytest.mark.parametrize(
    ("current", "requested", "expected"),
    [
        ("10.1.1.0/28", None, "10.1.1.16/28"),
        ("192.168.1.0/8", None, "193.0.0.0/8"),
        ("10.2.3.4/16", 24, "10.3.0.0/24"),
        ("10.18.126.0/24", 28, "10.18.127.0/28"),
        ("10.18.127.0/28", 24, "10.18.128.0/24"),
        ("10.0.0.0/24", 16, "10.1.0.0/16"),
    ],
)
def test_next_block_after(current: str, requested: int | None, expected: str) -> None:
    assert str(next_block_after(Cidr.parse(current), requested)) == expected


def test_next_block_after_fails_at_end_of_address_space() -> None:
    with pytest.raises(AddressOverflow):
        next_block_after(Cidr.parse("255.255.255.0/24"))
    with pytest.raises(AddressOverflow):
        next_block_after(Cidr.parse("255.255.255.255/32"), 24)


@pytest.mark.parametrize(
    "text", ["0.0.0.0/0", "10.1.2.3/24", "255.255.255.255/32", "172.16.0.0/12"]
)
def test_cidr_text_and_block_properties(text: str) -> None:
    cidr = Cidr.parse(text)

    assert Cidr.parse(str(cidr)) == cidr
    assert cidr.contains(cidr)
    assert 0 <= cidr.network_address() <= cidr.broadcast_address() <= 0xFFFFFFFF
