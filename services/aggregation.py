from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any, Callable, Dict, Iterable

from services.expense_normalizer import Expense
from services.field_resolver import get_path, parse_amount, resolve
from shared.config import ProgramFields

CENT = Decimal("0.01")
# Wide enough for every finite float, so quantize and sums never overflow the context.
MONEY_CONTEXT = Context(prec=400)


def round_money(value: float) -> float:
    """Round to cents, halves away from zero (10.005 -> 10.01, -0.125 -> -0.13). Non-finite values pass through."""
    value = float(value)
    if not math.isfinite(value):
        return value
    return float(Decimal(repr(value)).quantize(CENT, rounding=ROUND_HALF_UP, context=MONEY_CONTEXT))


def _sum(values: Iterable[float]) -> float:
    # Summing the decimal representations keeps 0.1 + 0.2 at 0.3 before rounding.
    result = Decimal(0)
    for value in values:
        result = MONEY_CONTEXT.add(result, Decimal(repr(float(value))))
    return float(result)


def final_cost(expense: Expense) -> float:
    return expense.final_cost


def total(expenses: Iterable[Expense], selector: Callable[[Expense], float] = final_cost) -> float:
    """Sum `selector` over the expenses and round to cents. Zero and negative values count."""
    return round_money(_sum(selector(expense) for expense in expenses))


def program_final_cost(record: Dict[str, Any], programs: ProgramFields) -> float:
    """Final cost of one raw linked deal, read from the field its program stores it in; 0 for other programs."""
    program_id = get_path(record, ("program", "id"))
    path = programs.path_for(None if program_id is None else str(program_id))
    if path is None:
        return 0.0
    return parse_amount(resolve(record, path))


def program_total(records: Iterable[Dict[str, Any]], programs: ProgramFields) -> float:
    return round_money(_sum(program_final_cost(record, programs) for record in records))
