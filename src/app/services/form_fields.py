"""Extração heurística de campos de formulário do payload de Flow.

Os clientes de Flow enviam os campos em formatos diferentes. Este módulo
procura a coleção de campos numa ordem fixa de locais conhecidos e a
achata em `nome -> valor escalar`. É cola best-effort: nunca levanta erro,
retorna `{}` quando nada é reconhecido.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

Scalar = str | int | float | bool
FormFields = dict[str, Scalar]

_NAME_KEYS = ("name", "key", "id")


def _is_scalar(value: object) -> bool:
    return isinstance(value, (str, int, float, bool))


def _record_value(record: dict[str, Any]) -> object | None:
    if "value" in record:
        return record["value"]
    selected = record.get("selected_option")
    if isinstance(selected, dict) and selected.get("id"):
        return selected["id"]
    values = record.get("values")
    if isinstance(values, list) and len(values) == 1:
        return values[0]
    return None


def records_to_fields(records: list[Any]) -> FormFields:
    """Converte lista de `{name|key|id, value|selected_option|values}`."""
    fields: FormFields = {}
    for record in records:
        if not isinstance(record, dict):
            continue
        name = next((record[k] for k in _NAME_KEYS if record.get(k)), None)
        if not isinstance(name, str):
            continue
        value = _record_value(record)
        if _is_scalar(value):
            fields[name] = value  # type: ignore[assignment]
    return fields


def _scalar_entries(mapping: dict[str, Any]) -> FormFields:
    return {
        str(key): value
        for key, value in mapping.items()
        if _is_scalar(value) and value != ""
    }


def _fields_from_root(root: object) -> FormFields:
    if isinstance(root, list):
        return records_to_fields(root)
    if isinstance(root, dict):
        nested = root.get("fields")
        if isinstance(nested, list):
            found = records_to_fields(nested)
            if found:
                return found
        return _scalar_entries(root)
    return {}


def _get(obj: object, *path: str) -> object:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


_ROOTS: tuple[Callable[[object], object], ...] = (
    lambda payload: _get(payload, "data", "fields"),
    lambda payload: _get(payload, "data", "service_form"),
    lambda payload: _get(payload, "fields"),
    lambda payload: _get(payload, "data"),
)


def extract_form_fields(payload: object) -> FormFields:
    """Achata campos do formulário do payload decifrado.

    Ordem de prioridade: `data.fields`, `data.service_form`, `fields`,
    `data` e, por último, cada `data.form_responses[*].fields`. O primeiro
    local que produzir ao menos um campo vence.

    Args:
        payload: Cleartext do Flow (qualquer JSON).

    Returns:
        Mapeamento plano nome -> valor escalar; vazio se nada reconhecido.
    """
    for root in _ROOTS:
        fields = _fields_from_root(root(payload))
        if fields:
            return fields

    form_responses = _get(payload, "data", "form_responses")
    if isinstance(form_responses, list):
        for response in form_responses:
            records = _get(response, "fields")
            if isinstance(records, list):
                fields = records_to_fields(records)
                if fields:
                    return fields
    return {}
