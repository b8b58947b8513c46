import enum
from decimal import Decimal


class Color(enum.IntEnum):
    RED = 1
    GREEN = 2


class Invoice:
    amount: Decimal
    color: Color
