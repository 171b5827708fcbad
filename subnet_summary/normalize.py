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
"""Normalization utilities for report display values."""

from __future__ import annotations

from typing import Iterable, Sequence

from subnet_summary.cidr import Cidr
from subnet_summary.models import NONE_VALUE


def short_resource_name(resource_ref: str | None, fallback: str = NONE_VALUE) -> str:
    """Return the last path segment of an Azure resource ID."""

    if not resource_ref:
        return fallback

    cleaned = resource_ref.strip().rstrip("/")
    if not cleaned:
        return fallback

    return cleaned.rsplit("/", 1)[-1]


def format_dns_servers(servers: Sequence[str] | None, fallback: str = NONE_VALUE) -> str:
    """Join DNS servers with commas, or return the fallback when unset."""

    if servers is None:
        return fallback
    return ",".join(servers)


def format_cidr_list(cidrs: Iterable[Cidr], separator: str = ",") -> str:
    """Join CIDR blocks with commas."""

    return separator.join(str(cidr) for cidr in cidrs)
