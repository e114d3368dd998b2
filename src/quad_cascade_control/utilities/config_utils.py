from typing import Any

import yaml


def load_yaml_config(path: str) -> Any:
    with open(path, "r") as file:
        return yaml.safe_load(file)


def flatten_config(config: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """
    Flatten a nested configuration dictionary into a single-level dictionary
    with dot-separated keys (e.g., `{"A": {"kp": 1}}` -> `{"A.kp": 1}`).

    List values are kept as leaf values.
    """
    flat_config: dict[str, Any] = {}
    for key, value in config.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat_config.update(flatten_config(value, prefix=full_key))
        else:
            flat_config[full_key] = value

    return flat_config
