"""
Validadores específicos para Brasil
"""
import re
from typing import Optional


def only_digits(value: Optional[str]) -> str:
    """Quita todo lo que no sea dígito."""
    return re.sub(r'\D', '', value or '')


def validate_cpf(cpf: str) -> bool:
    """
    Valida CPF brasileño.
    - 11 dígitos (acepta máscara XXX.XXX.XXX-XX)
    - No puede tener todos los dígitos iguales
    - Verifica los dos dígitos verificadores
    """
    cleaned = only_digits(cpf)

    if len(cleaned) != 11:
        return False

    if cleaned == cleaned[0] * 11:
        return False

    for position in (9, 10):
        total = sum(int(cleaned[i]) * (position + 1 - i) for i in range(position))
        digit = (total * 10) % 11
        if digit == 10:
            digit = 0
        if digit != int(cleaned[position]):
            return False

    return True


def format_cpf(cpf: str) -> str:
    """Formatea CPF como XXX.XXX.XXX-XX."""
    cleaned = only_digits(cpf)
    if len(cleaned) != 11:
        return cpf
    return f"{cleaned[:3]}.{cleaned[3:6]}.{cleaned[6:9]}-{cleaned[9:]}"


def validate_brazil_phone(phone: str) -> bool:
    """
    Valida teléfono brasileño.
    Formatos válidos:
    - +55 DD 9XXXX-XXXX (móvil)
    - +55 DD XXXX-XXXX (fijo)
    - también sin +55
    """
    cleaned = re.sub(r'[\s\-\(\)]', '', phone)

    patterns = [
        r'^\+55[1-9][0-9]9[0-9]{8}$',
        r'^\+55[1-9][0-9][2-8][0-9]{7}$',
        r'^55[1-9][0-9]9[0-9]{8}$',
        r'^[1-9][0-9]9[0-9]{8}$',
        r'^[1-9][0-9][2-8][0-9]{7}$',
    ]

    return any(re.match(pattern, cleaned) for pattern in patterns)
