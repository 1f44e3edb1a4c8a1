from registry.app.metadata.autocomplete import MetadataAutocompleter, autocomplete


def test_missing_and_null_fields_are_filled():
    base = {"upi": "00001", "commodityCode": None}
    previous = {"upi": "00000", "commodityCode": "122267310", "origin": "NL"}

    result = autocomplete(base, previous, ["commodityCode", "origin"])

    assert result == {"upi": "00001", "commodityCode": "122267310", "origin": "NL"}


def test_present_values_are_kept():
    base = {"commodityCode": "999", "recyclable": False, "pieces": 0, "note": ""}
    previous = {"commodityCode": "122267310", "recyclable": True, "pieces": 4, "note": "x"}

    result = autocomplete(base, previous, ["commodityCode", "recyclable", "pieces", "note"])

    assert result == base


def test_only_enabled_fields_are_copied():
    result = autocomplete({}, {"commodityCode": "1", "origin": "NL"}, ["origin"])

    assert result == {"origin": "NL"}


def test_inputs_are_not_modified():
    base = {"upi": "00001"}
    previous = {"tags": ["a", "b"]}

    result = autocomplete(base, previous, ["tags"])
    result["tags"].append("c")

    assert base == {"upi": "00001"}
    assert previous == {"tags": ["a", "b"]}


def test_autocompleter_uses_configured_fields():
    completer = MetadataAutocompleter(["commodityCode"])

    result = completer.autocomplete(
        {"upi": "00001"}, {"commodityCode": "122267310", "origin": "NL"}
    )

    assert completer.enabled_fields == frozenset({"commodityCode"})
    assert result == {"upi": "00001", "commodityCode": "122267310"}


def test_no_enabled_fields_returns_copy():
    base = {"upi": "00001"}

    result = MetadataAutocompleter([]).autocomplete(base, {"upi": "00002"})

    assert result == base
    assert result is not base
