from rtexporter.annotations import merge


def test_merge_nothing():
    assert merge() == {}


def test_merge_later_wins():
    first = {"a": "1", "c": "x"}
    second = {"a": "2", "b": "3"}
    assert merge(first, second) == {"a": "2", "b": "3", "c": "x"}


def test_merge_does_not_mutate_inputs():
    first = {"a": "1"}
    second = {"b": "2"}
    result = merge(first, second)
    result["z"] = "9"
    assert first == {"a": "1"}
    assert second == {"b": "2"}


def test_merge_returns_new_object():
    src = {"k": "v"}
    result = merge(src)
    assert result == src
    assert result is not src


def test_merge_skips_none():
    assert merge(None, {"k": "v"}, None) == {"k": "v"}