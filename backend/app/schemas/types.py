"""
Tipi Pydantic condivisi
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Gli importi sono Decimal in memoria ma numeri JSON nei documenti
salvati (regole contrattuali, snapshot e totali fattura), come nei
dati storici.
"""

from decimal import Decimal
from typing import Annotated, Any, Union

from pydantic import BeforeValidator, PlainSerializer


def _float_via_str(value: Any) -> Any:
    """Evita il rumore binario dei float: 6.6 -> Decimal("6.6")."""
    if isinstance(value, float):
        return str(value)
    return value


def _decimal_to_json_number(value: Decimal) -> Union[int, float]:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


Money = Annotated[
    Decimal,
    BeforeValidator(_float_via_str),
    PlainSerializer(_decimal_to_json_number, return_type=Union[int, float], when_used="json"),
]
