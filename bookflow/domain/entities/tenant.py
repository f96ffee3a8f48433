from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Tenant:
    id: str
    slug: str
    name: str
    timezone: str | None = None
