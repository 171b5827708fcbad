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
"""IPv4 CIDR value type and address arithmetic.

Addresses are plain 32-bit unsigned integers. The ``Cidr`` value keeps the
address exactly as given, so ``10.0.0.1/24`` is a different value from
``10.0.0.0/24`` even though both describe the same block.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

from subnet_summary.errors import (
    AddressOverflow,
    BlockTooSmall,
    InvalidAddress,
    InvalidFormat,
    InvalidPrefixLength,
    PrefixTooLong,
)

MAX_PREFIX_LENGTH = 32
ADDRESS_SPACE_SIZE = 1 << MAX_PREFIX_LENGTH

# network, gateway, two DNS and broadcast
AZURE_RESERVED_ADDRESSES = 5


def parse_address(text: str) -> int:
    """Parse a dotted-quad IPv4 address into an integer."""

    try:
        return int(ipaddress.IPv4Address(text.strip()))
    except ipaddress.AddressValueError as exc:
        raise InvalidAddress(f"invalid IPv4 address: {text!r}") from exc


def format_address(address: int) -> str:
    """Format an integer IPv4 address as dotted-quad text."""

    return str(ipaddress.IPv4Address(address))


def netmask(prefix_length: int) -> int:
    """Return the netmask for a prefix length as an integer."""

    _check_prefix_length(prefix_length)
    host_bits = MAX_PREFIX_LENGTH - prefix_length
    return ((ADDRESS_SPACE_SIZE - 1) >> host_bits) << host_bits


def network_address(address: int, prefix_length: int) -> int:
    """Clear the host bits of ``address``."""

    return address & netmask(prefix_length)


def broadcast_address(address: int, prefix_length: int) -> int:
    """Set the host bits of ``address``."""

    mask = netmask(prefix_length)
    return (address & mask) | (~mask & (ADDRESS_SPACE_SIZE - 1))


def address_after_block(address: int, prefix_length: int) -> int:
    """Return the first address after the block of ``prefix_length`` holding ``address``."""

    following = network_address(address, prefix_length) + block_size(prefix_length)
    if following >= ADDRESS_SPACE_SIZE:
        raise AddressOverflow(
            f"no address follows {format_address(address)}/{prefix_length}"
        )
    return following


def block_size(prefix_length: int) -> int:
    """Number of addresses in a block of ``prefix_length``."""

    _check_prefix_length(prefix_length)
    return 1 << (MAX_PREFIX_LENGTH - prefix_length)


def usable_host_count(prefix_length: int) -> int:
    """Usable hosts once Azure has reserved its five addresses."""

    _check_prefix_length(prefix_length)
    if prefix_length >= MAX_PREFIX_LENGTH - 2:
        raise BlockTooSmall(
            f"/{prefix_length} cannot hold {AZURE_RESERVED_ADDRESSES} reserved addresses"
        )
    return block_size(prefix_length) - AZURE_RESERVED_ADDRESSES


def alignment_mask(address: int) -> int:
    """Smallest prefix length for which ``address`` is a network address."""

    if address == 0:
        return 0
    trailing_zeros = (address & -address).bit_length() - 1
    return MAX_PREFIX_LENGTH - trailing_zeros


def _check_prefix_length(prefix_length: int) -> None:
    if prefix_length > MAX_PREFIX_LENGTH:
        raise PrefixTooLong(f"prefix length /{prefix_length} exceeds /{MAX_PREFIX_LENGTH}")


@dataclass(frozen=True, order=True)
class Cidr:
    """IPv4 address with a prefix length.

    Ordering is by address first, then prefix length, so a covering block
    sorts before a more specific block starting at the same address.
    """

    address: int
    prefix_length: int

    def __post_init__(self) -> None:
        if not 0 <= self.address < ADDRESS_SPACE_SIZE:
            raise InvalidAddress(f"address {self.address} is outside the IPv4 space")
        if not 0 <= self.prefix_length <= MAX_PREFIX_LENGTH:
            raise InvalidPrefixLength(f"prefix length {self.prefix_length} is not in 0..32")

    @classmethod
    def parse(cls, text: str) -> Cidr:
        """Parse ``a.b.c.d/n`` text."""

        parts = text.strip().split("/")
        if len(parts) != 2:
            raise InvalidFormat(f"expected address/prefix, got {text!r}")
        address_text, prefix_text = parts
        address = parse_address(address_text)
        prefix_text = prefix_text.strip()
        if not (prefix_text.isascii() and prefix_text.isdigit()):
            raise InvalidPrefixLength(f"invalid prefix length: {prefix_text!r}")
        return cls(address, int(prefix_text))

    def __str__(self) -> str:
        return f"{format_address(self.address)}/{self.prefix_length}"

    def network_address(self) -> int:
        return network_address(self.address, self.prefix_length)

    def broadcast_address(self) -> int:
        return broadcast_address(self.address, self.prefix_length)

    def contains(self, other: Cidr) -> bool:
        """True when every address of ``other`` lies inside this block."""

        return (
            other.network_address() >= self.network_address()
            and other.broadcast_address() <= self.broadcast_address()
        )

    def contains_address(self, address: int) -> bool:
        return self.network_address() <= address <= self.broadcast_address()

    def usable_host_count(self) -> int:
        return usable_host_count(self.prefix_length)


def next_block_after(current: Cidr, requested_prefix_length: int | None = None) -> Cidr:
    """Return the block following ``current`` at the requested size.

    A requested block of the same size or bigger advances from the network
    address of ``current`` at the requested granularity. A smaller block
    starts right after the broadcast address of ``current``.
    """

    prefix_length = (
        current.prefix_length if requested_prefix_length is None else requested_prefix_length
    )
    if prefix_length <= current.prefix_length:
        following = address_after_block(current.address, prefix_length)
    else:
        following = address_after_block(current.broadcast_address(), prefix_length)
    return Cidr(following, prefix_length)
