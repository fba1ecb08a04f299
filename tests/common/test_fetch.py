from src.academic_system.academic_system.common.fetch import fetch_all


def test_all_loaders_succeed():
    result = fetch_all({"a": lambda: 1, "b": lambda: [2]})

    assert result.ok
    assert result.data == {"a": 1, "b": [2]}


def test_one_failure_keeps_the_rest():
    def boom():
        raise RuntimeError("database unavailable")

    result = fetch_all({"grades": boom, "attendance": lambda: {"rate": 90}})

    assert not result.ok
    assert result.errors == {"grades": "database unavailable"}
    assert result.get("attendance") == {"rate": 90}
    assert result.get("grades", "n/a") == "n/a"
    assert "grades" not in result.data


def test_empty_batch():
    result = fetch_all({})

    assert result.ok
    assert result.data == {}
