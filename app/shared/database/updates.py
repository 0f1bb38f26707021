from typing import Any, Dict

from sqlalchemy import inspect


def drop_required_nulls(model, updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Quita de una actualización parcial los null enviados para columnas NOT NULL.

    Un `null` explícito en el JSON sobre un campo obligatorio se ignora en vez
    de llegar a la base; los campos opcionales sí se pueden limpiar con null.
    """
    columns = inspect(model).columns
    return {
        field: value
        for field, value in updates.items()
        if value is not None or field not in columns or columns[field].nullable
    }
