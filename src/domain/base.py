"""Shared base for domain entities"""

import uuid
from decimal import Decimal, ROUND_HALF_UP
from sqlmodel import SQLModel

CENT = Decimal("0.01")


def generate_uuid() -> str:
    return str(uuid.uuid4())


def round_money(value) -> Decimal:
    """Round to two decimal places, half-up"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class BaseModel(SQLModel):
    pass
