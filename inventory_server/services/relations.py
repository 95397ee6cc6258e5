"""
Inventory Server - Relation Decoding
Linhas com relacoes podem chegar como objeto, lista ou nulo
"""
from typing import Any, Optional


def one_related(value: Any) -> Optional[dict]:
    """Colapsa uma relacao objeto-ou-lista em um unico registro opcional"""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return one_related(value[0]) if value else None
    if isinstance(value, dict):
        return value
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return None


def related_field(value: Any, field: str) -> Any:
    """Campo de uma relacao decodificada (None se ausente)"""
    record = one_related(value)
    if record is None:
        return None
    return record.get(field)
