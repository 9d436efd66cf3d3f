"""Tests for identity-key merging."""

from appscout.dedupe import (
    RecordMerger,
    app_key,
    is_blank,
    name_key,
    normalize_key,
    review_key,
)


def merge_candidates(candidates, key):
    return RecordMerger(key).merge(candidates).records


def test_complementary_fields_are_combined():
    merged = merge_candidates(
        [{"id": "r1", "text": "Great app", "score": None}, {"id": "r1", "text": None, "score": 4}],
        review_key,
    )
    assert merged == [{"id": "r1", "text": "Great app", "score": 4}]


def test_first_non_blank_value_wins():
    merged = merge_candidates(
        [{"appId": "com.x", "title": "From JSON-LD"}, {"appId": "com.x", "title": "From markup"}],
        app_key,
    )
    assert merged[0]["title"] == "From JSON-LD"


def test_blank_values_are_filled():
    merged = merge_candidates(
        [
            {"appId": "com.x", "title": "  ", "genres": [], "icon": None},
            {"appId": "com.x", "title": "X", "genres": ["Games"], "icon": "https://i/x.png"},
        ],
        app_key,
    )
    assert merged[0] == {"appId": "com.x", "title": "X", "genres": ["Games"], "icon": "https://i/x.png"}


def test_zero_and_false_are_not_blank():
    assert not is_blank(0)
    assert not is_blank(False)
    assert is_blank("")
    assert is_blank({})
    merged = merge_candidates([{"appId": "a", "price": 0.0}, {"appId": "a", "price": 2.99}], app_key)
    assert merged[0]["price"] == 0.0


def test_order_of_first_appearance_is_kept():
    merged = merge_candidates(
        [{"appId": "b"}, {"appId": "a"}, {"appId": "b", "title": "B"}, {"appId": "c"}],
        app_key,
    )
    assert [m["appId"] for m in merged] == ["b", "a", "c"]
    assert merged[0]["title"] == "B"


def test_candidates_without_key_are_dropped():
    result = RecordMerger(name_key("name")).merge([{"name": "Camera"}, {"type": "Hardware"}, {"name": None}])
    assert result.records == [{"name": "Camera"}]
    assert result.dropped_without_key == 2


def test_name_key_is_case_insensitive():
    result = RecordMerger(name_key("name")).merge([{"name": "Camera"}, {"name": " CAMERA "}])
    assert len(result.records) == 1
    assert result.duplicates_merged == 1


def test_merge_state_is_local_to_each_call():
    merger = RecordMerger(app_key)
    first = merger.merge([{"appId": "a"}])
    second = merger.merge([{"appId": "a"}])
    assert first.duplicates_merged == 0
    assert second.duplicates_merged == 0
    assert len(second.records) == 1


def test_review_key_fallbacks():
    assert review_key({"id": "9"}) == "id:9"
    assert review_key({"id": None, "text": "Nice"}) == "text:Nice"
    assert review_key({"userName": "Ann", "date": "2024-01-01"}) == "author:Ann|2024-01-01"


def test_app_key_prefers_bundle_id():
    assert app_key({"appId": "com.x", "id": 1}) == "com.x"
    assert app_key({"id": 123}) == "123"
    assert app_key({"title": "no id"}) is None


def test_normalize_key():
    assert normalize_key("  Foo   Bar ") == "foo bar"
    assert normalize_key(None) == ""
