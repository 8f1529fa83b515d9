"""
Collected Data Validation

Checks submitted values against a data set expectation's column rules.
Column rules: {"name": str, "nulls_ok": bool, "must_be_int": bool}
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


INTEGER_PATTERN = re.compile(r"^-?\d+$")


@dataclass
class ValueCheck:
    valid: bool
    error: Optional[str] = None


@dataclass
class DataCheck:
    valid: bool
    errors: Dict[str, str] = field(default_factory=dict)


def validate_value(value: Any, column: Dict[str, Any]) -> ValueCheck:
    """Validate one value against one column definition."""
    name = column["name"]
    text = "" if value is None else str(value).strip()

    if text == "":
        if not column.get("nulls_ok", False):
            return ValueCheck(False, f'"{name}" cannot be empty. Please enter a value.')
        return ValueCheck(True)

    if column.get("must_be_int", False) and not INTEGER_PATTERN.match(text):
        return ValueCheck(
            False,
            f'"{name}" must be a whole number (integer). You entered "{value}" which is not valid.',
        )

    return ValueCheck(True)


def validate_data(data: Dict[str, Any], columns: List[Dict[str, Any]]) -> DataCheck:
    """Validate a row of values; errors are keyed by column name."""
    errors = {}
    for column in columns:
        result = validate_value(data.get(column["name"]), column)
        if not result.valid:
            errors[column["name"]] = result.error
    return DataCheck(valid=not errors, errors=errors)


def column_requirements(column: Dict[str, Any]) -> str:
    """Human-readable summary of a column's rules."""
    reqs = []
    if not column.get("nulls_ok", False):
        reqs.append("Required")
    if column.get("must_be_int", False):
        reqs.append("Must be integer")
    return ", ".join(reqs) if reqs else "Optional"
