# KBSync Generated Values
# Placeholders filled in only on upload and ignored during change detection

import random
from enum import Enum
from typing import Any

GENERATED_VALUE_PREFIX = "generated-value-"


class GeneratedValue(str, Enum):
    """Marks a field to be generated when the entity is created."""

    COLOR = GENERATED_VALUE_PREFIX + "color"


def is_generated_value(value: Any) -> bool:
    """Check if value is a generated-value placeholder."""
    return isinstance(value, str) and value.startswith(GENERATED_VALUE_PREFIX)


def random_color() -> str:
    """Random hex color like ``#1a2b3c``."""
    return f"#{random.randint(0, 0xFFFFFF):06x}"


def generate_value(value: GeneratedValue) -> Any:
    """Produce a concrete value for a placeholder."""
    if value == GeneratedValue.COLOR:
        return random_color()
    raise ValueError(f"Unknown generated value: {value}")


def resolve_generated_values(data: dict[str, Any]) -> dict[str, Any]:
    """Replace top level placeholders in an entity dictionary with concrete values."""
    for key, value in data.items():
        if is_generated_value(value):
            data[key] = generate_value(GeneratedValue(value))
    return data
