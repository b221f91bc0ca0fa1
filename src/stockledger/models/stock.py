from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Exchange:
    name: str
    abbreviation: str
    country: str
    id: int | None = None


@dataclass
class Stock:
    ticker: str
    company_name: str
    abbreviation: str = ""
    description: str = ""
    exchange_id: int | None = None
    sector: str = ""
    country: str = ""
    ai_description: str = ""
    id: int | None = None
    updated_at: datetime | None = None
