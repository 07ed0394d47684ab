from dataclasses import dataclass
from typing import Optional

import yaml

from rtexporter.dump import dump_object


@dataclass
class _Zone:
    name: str = ""
    type: str = ""
    costs: Optional[list] = None


def test_nil():
    assert dump_object(None) == "null\n"


def test_empty_zone_dataclass():
    assert dump_object(_Zone()) == 'name: ""\ntype: ""\n'


def test_empty_zone_mapping():
    assert dump_object({"name": "", "type": ""}) == 'name: ""\ntype: ""\n'


def test_round_trip_nested():
    data = {"zones": [{"name": "zone-0", "cpus": [0, 1, 2]}], "flag": True, "text": "true"}
    assert yaml.safe_load(dump_object(data)) == data


def test_keys_sorted():
    out = dump_object({"b": 1, "a": 2})
    assert out.index("a:") < out.index("b:")


def test_unmarshalable_object():
    out = dump_object(object())
    assert out.startswith("<!!! FAILED TO MARSHAL object (")
    assert out.endswith(" !!!>\n")