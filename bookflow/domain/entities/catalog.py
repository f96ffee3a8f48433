from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    duration_minutes: int
    price: Decimal
    category: str | None = None
    description: str | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError("Service duration must be positive")
        if self.price < 0:
            raise ValueError("Service price must be non-negative")


@dataclass(frozen=True)
class StaffMember:
    # availability is derived from the store on demand, never kept here
    id: str
    display_name: str
    avatar_url: str | None = None
    role: str | None = None
    is_active: bool = True
