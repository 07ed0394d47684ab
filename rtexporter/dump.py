"""Render arbitrary objects as YAML text for logging."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Mapping
from typing import Any

import yaml

_STR_TAG = "tag:yaml.org,2002:str"


class _Dumper(yaml.SafeDumper):
    """Safe dumper that quotes ambiguous strings with double quotes."""


def _represent_str(dumper: _Dumper, value: str) -> yaml.ScalarNode:
    if "\n" in value:
        return dumper.represent_scalar(_STR_TAG, value, style="|")
    if value == "" or dumper.resolve(yaml.ScalarNode, value, (True, False)) != _STR_TAG:
        return dumper.represent_scalar(_STR_TAG, value, style='"')
    return dumper.represent_scalar(_STR_TAG, value)


_Dumper.add_representer(str, _represent_str)


def _to_plain(obj: Any) -> Any:
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return _to_plain(to_dict())
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: _to_plain(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
            if getattr(obj, f.name) is not None
        }
    if isinstance(obj, enum.Enum):
        return _to_plain(obj.value)
    if isinstance(obj, Mapping):
        return {key: _to_plain(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_plain(item) for item in obj]
    return obj


def dump_object(obj: Any) -> str:
    """Return the YAML rendering of ``obj``, or a marker text if it cannot be rendered."""
    try:
        out = yaml.dump(
            _to_plain(obj),
            Dumper=_Dumper,
            default_flow_style=False,
            sort_keys=True,
            allow_unicode=True,
        )
    except (yaml.YAMLError, TypeError, ValueError) as err:
        return f"<!!! FAILED TO MARSHAL {type(obj).__name__} ({err}) !!!>\n"
    if out.endswith("\n...\n"):
        out = out[: -len("...\n")]
    return out