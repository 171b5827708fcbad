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
"""Subnet de-duplication."""

from __future__ import annotations

import logging
from typing import AbstractSet, Iterable

from subnet_summary.cidr import Cidr
from subnet_summary.models import SubnetRecord

_LOGGER = logging.getLogger(__name__)

# Placeholder and system subnets that carry no allocation information.
DEFAULT_SUBNET_NAMES_TO_IGNORE: frozenset[str] = frozenset(
    {
        "default",
        "jenkinsarm-snet",
        "pkrsn1ooslfxj77",
        "pkrsn8jufz9plf6",
        "pkrsnsnajtq3h3i",
        "pkrsnxocivqofa6",
        "orggmcmg",
        "restore-vm-subnet",
    }
)


def deduplicate_subnets(
    records: Iterable[SubnetRecord],
    ignore_names: AbstractSet[str] | None = None,
) -> list[SubnetRecord]:
    """Drop ignored and unconfigured subnets, then collapse repeated (CIDR, subscription) keys.

    The same CIDR in different subscriptions is kept; that is an overlap,
    not a duplicate.
    """

    names_to_ignore = DEFAULT_SUBNET_NAMES_TO_IGNORE if ignore_names is None else ignore_names

    kept: list[tuple[tuple[Cidr, str], SubnetRecord]] = []
    for record in records:
        if record.subnet_name in names_to_ignore:
            _LOGGER.debug("Ignoring subnet %r by name", record.subnet_name)
            continue
        if record.subnet_cidr is None:
            _LOGGER.debug("Ignoring subnet %r without address prefix", record.subnet_name)
            continue
        kept.append(((record.subnet_cidr, record.subscription_id), record))

    kept.sort(key=lambda item: item[0])

    deduped: list[SubnetRecord] = []
    previous_key: tuple[Cidr, str] | None = None
    for key, record in kept:
        if key == previous_key:
            _LOGGER.warning(
                "Removing duplicate subnet %r %s in subscription %r",
                record.subnet_name,
                record.subnet_cidr,
                record.subscription_name,
            )
            continue
        deduped.append(record)
        previous_key = key

    _LOGGER.info("De-duplicated subnets: %s -> %s", len(kept), len(deduped))
    return deduped
