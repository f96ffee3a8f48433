from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Union


@dataclass(frozen=True)
class SelectService:
    service_id: str


@dataclass(frozen=True)
class SelectStaff:
    staff_id: str


@dataclass(frozen=True)
class SelectDate:
    date: date


@dataclass(frozen=True)
class SelectSlot:
    start_time: datetime


@dataclass(frozen=True)
class SelectAlternative:
    start_time: datetime


@dataclass(frozen=True)
class SubmitCustomerInfo:
    name: str
    phone: str
    email: str = ""
    notes: str = ""


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class Reset:
    pass


WizardEvent = Union[
    SelectService,
    SelectStaff,
    SelectDate,
    SelectSlot,
    SelectAlternative,
    SubmitCustomerInfo,
    Next,
    Back,
    Retry,
    Reset,
]
