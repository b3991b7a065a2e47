"""
Saldo estimado de caja a partir de los movimientos manuales.

saldo = monto de apertura + ingresos - egresos

Las ventas no entran en el cálculo: sólo se reflejan los movimientos
cargados a mano. Es una limitación conocida, no un error.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from app.common.exceptions import (
    InvalidAmount, InvalidDescription, InvalidMovementType, NoOpenRegister
)
from app.modules.backend.schemas import (
    CashMovement, CashMovementCreate, CashStatus, MovementType
)


@dataclass(frozen=True)
class MovementSummary:
    total_income: Decimal
    total_expense: Decimal
    count: int


def summarize_movements(movements: Iterable[CashMovement]) -> MovementSummary:
    total_income = Decimal("0")
    total_expense = Decimal("0")
    count = 0

    for movement in movements:
        count += 1
        if movement.tipo == MovementType.INCOME:
            total_income += movement.monto
        elif movement.tipo == MovementType.EXPENSE:
            total_expense += movement.monto

    return MovementSummary(total_income=total_income, total_expense=total_expense, count=count)


def compute_estimated_balance(status: Optional[CashStatus], movements: Iterable[CashMovement]) -> Decimal:
    """Saldo estimado de la caja abierta; NoOpenRegister si está cerrada."""
    if status is None or not status.is_open:
        raise NoOpenRegister()

    summary = summarize_movements(movements)
    return (status.monto_apertura or Decimal("0")) + summary.total_income - summary.total_expense


def parse_amount(amount: Any) -> Decimal:
    """Convertir lo que tipeó el operador a Decimal; InvalidAmount si no es un número."""
    if isinstance(amount, bool) or amount is None:
        raise InvalidAmount()
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount("El monto debe ser un número")
    if not value.is_finite():
        raise InvalidAmount("El monto debe ser un número")
    return value


def validate_movement(tipo: Any, monto: Any, descripcion: Optional[str]) -> CashMovementCreate:
    """
    Validación local de un movimiento antes de enviarlo.

    La API vuelve a validar y puede rechazarlo igual.
    """
    try:
        movement_type = MovementType(tipo)
    except ValueError:
        raise InvalidMovementType()

    amount = parse_amount(monto)
    if amount <= 0:
        raise InvalidAmount()

    description = (descripcion or "").strip()
    if not description:
        raise InvalidDescription()

    return CashMovementCreate(tipo=movement_type, monto=amount, descripcion=description)
