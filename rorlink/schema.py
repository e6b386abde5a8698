from typing import Any, Dict, List

ROR_LIST_FIELDS = ["aliases", "links", "names"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def validate_ror_record(data: Any) -> List[str]:
    """
    Returns a list of validation error messages for a raw registry record.
    Empty list means valid. Accepts v1 (`name`) and v2 (`names`) shapes.
    """
    if not isinstance(data, dict):
        return ["Record must be a JSON object"]

    errors: List[str] = []

    if "id" not in data:
        errors.append("Missing required field: id")
    elif not _is_non_empty_str(data["id"]):
        errors.append("Field 'id' must be a non-empty string")

    for f in ROR_LIST_FIELDS:
        if f in data and data[f] is not None and not isinstance(data[f], list):
            errors.append(f"Field '{f}' must be a list if provided")

    has_name = _is_non_empty_str(data.get("name"))
    has_names = isinstance(data.get("names"), list) and any(
        isinstance(n, dict) and _is_non_empty_str(n.get("value")) for n in data["names"]
    )
    if not has_name and not has_names:
        errors.append("Missing required field: name")

    return errors


def validate_crosswalk_binding(binding: Any) -> List[str]:
    """
    Returns validation errors for one SPARQL binding of the crosswalk export.
    A binding needs `rorid.value` and `api.value` strings.
    """
    if not isinstance(binding, dict):
        return ["Binding must be a JSON object"]

    errors: List[str] = []
    for f in ("rorid", "api"):
        cell = binding.get(f)
        if not isinstance(cell, dict):
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(cell.get("value")):
            errors.append(f"Field '{f}.value' must be a non-empty string")
    return errors


def validate_entity(entity: Dict[str, Any]) -> List[str]:
    """Validation errors for a parsed federation entity (entityID required)."""
    errors: List[str] = []
    if not _is_non_empty_str(entity.get("entity_id")):
        errors.append("Missing required attribute: entityID")
    return errors
