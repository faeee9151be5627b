"""JSON flattening utilities."""

from typing import Any


def flatten_json(
    nested_dict: dict,
    parent_key: str = "",
    separator: str = ".",
    max_depth: int = 10,
) -> dict:
    """Flatten a nested JSON dictionary.

    Args:
        nested_dict: The nested dictionary to flatten
        parent_key: Prefix for flattened keys
        separator: Separator between nested key levels
        max_depth: Maximum nesting depth to flatten

    Returns:
        Flattened dictionary with concatenated keys

    Example:
        >>> flatten_json({"temperatures": {"max": 31.2, "units": "C"}})
        {'temperatures.max': 31.2, 'temperatures.units': 'C'}
    """
    items: list[tuple[str, Any]] = []

    for key, value in nested_dict.items():
        new_key = f"{parent_key}{separator}{key}" if parent_key else key

        if isinstance(value, dict) and value and max_depth > 0:
            items.extend(
                flatten_json(
                    value,
                    parent_key=new_key,
                    separator=separator,
                    max_depth=max_depth - 1,
                ).items()
            )
        elif isinstance(value, dict):
            # Empty object carries no measurement
            items.append((new_key, None if not value else value))
        else:
            # Lists stay as-is
            items.append((new_key, value))

    return dict(items)

