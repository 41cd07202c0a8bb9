from __future__ import annotations

import math
from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} no es válido")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} debe tener al menos {min_len} caracteres")
    return value


def require_positive_id(value: Any, field_name: str) -> int:
    try:
        ident = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} no es válido")
    if ident <= 0:
        raise ValidationError(f"{field_name} no es válido")
    return ident


def parse_score_input(value: Any, field_name: str, *, max_score: float) -> Optional[float]:
    """Parse a score typed into a grade form.

    Empty input means "not entered yet" and yields None. Anything that is not a
    number between 0 and ``max_score`` is rejected.
    """

    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name}: valor no numérico")
    try:
        score = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name}: valor no numérico")
    if math.isnan(score) or math.isinf(score):
        raise ValidationError(f"{field_name}: valor no numérico")
    if score < 0:
        raise ValidationError(f"{field_name}: mínimo 0")
    if score > max_score:
        raise ValidationError(f"{field_name}: máximo {max_score:g}")
    return score
