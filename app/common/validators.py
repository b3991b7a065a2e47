"""
Validadores de documentos argentinos (DNI y CUIT/CUIL)
"""
import re
from typing import Optional


CUIT_MULTIPLIERS = [5, 4, 3, 2, 7, 6, 5, 4, 3, 2]


def _clean(document: str) -> str:
    # Limpiar puntos, guiones y espacios
    return re.sub(r'[\.\s\-]', '', document)


def validate_dni(dni: str) -> bool:
    """
    Valida DNI argentino.
    - 7 u 8 dígitos
    - Solo números (acepta puntos de miles)
    - No puede empezar con 0
    """
    cleaned = _clean(dni)

    if not cleaned.isdigit():
        return False

    if not 7 <= len(cleaned) <= 8:
        return False

    if cleaned.startswith('0'):
        return False

    return True


def calculate_cuit_check_digit(base: str) -> Optional[int]:
    """
    Dígito verificador de un CUIT/CUIL a partir de sus 10 primeros dígitos.
    Devuelve None cuando el cálculo da 10 (combinación sin dígito válido).
    """
    suma = sum(int(digito) * mult for digito, mult in zip(base, CUIT_MULTIPLIERS))
    resultado = 11 - (suma % 11)

    if resultado == 11:
        return 0
    if resultado == 10:
        return None
    return resultado


def validate_cuit(cuit: str) -> bool:
    """
    Valida CUIT/CUIL argentino.
    - 11 dígitos, formato XX-XXXXXXXX-X (guiones opcionales)
    - Verifica el dígito verificador
    """
    cleaned = _clean(cuit)

    if not cleaned.isdigit() or len(cleaned) != 11:
        return False

    return calculate_cuit_check_digit(cleaned[:10]) == int(cleaned[-1])


def validate_dni_cuit(document: str) -> bool:
    """DNI (7-8 dígitos) o CUIT (11 dígitos con verificador)."""
    if len(_clean(document)) == 11:
        return validate_cuit(document)
    return validate_dni(document)


def format_cuit(cuit: str) -> str:
    """
    Formatea CUIT al formato estándar XX-XXXXXXXX-X
    """
    if not validate_cuit(cuit):
        return cuit  # Retorna sin cambios si no es válido

    cleaned = _clean(cuit)
    return f"{cleaned[:2]}-{cleaned[2:10]}-{cleaned[-1]}"


def format_dni(dni: str) -> str:
    """
    Formatea DNI con puntos de miles
    """
    if not validate_dni(dni):
        return dni

    cleaned = _clean(dni)
    return f"{cleaned[:-6]}.{cleaned[-6:-3]}.{cleaned[-3:]}"


def format_dni_cuit(document: str) -> str:
    if len(_clean(document)) == 11:
        return format_cuit(document)
    return format_dni(document)
