"""Tests for alias resolution, coercion and record builders."""

from appscout.models import App, DataSafetyType, ListEntry, Review, Store
from appscout.normalize import (
    APP_FIELDS,
    REVIEW_FIELDS,
    as_text,
    build_app,
    build_data_safety_item,
    build_permission,
    build_review,
    build_suggestion,
    count,
    first_text,
    get_path,
    resolve,
    score,
    url,
)


def test_get_path_handles_missing_and_lists():
    data = {"a": {"b": [{"c": 1}]}}
    assert get_path(data, ("a", "b", 0, "c")) == 1
    assert get_path(data, ("a", "b", 5, "c")) is None
    assert get_path(data, ("a", "x")) is None
    assert get_path(data, "a") == {"b": [{"c": 1}]}
    assert get_path("not a dict", ("a",)) is None


def test_as_text_reads_label_objects():
    assert as_text({"label": "  Hello   world "}) == "Hello world"
    assert as_text({"name": {"label": "Ann"}}) == "Ann"
    assert as_text({"unknown": 1}) == ""
    assert as_text(True) == ""
    assert as_text(4.5) == "4.5"


def test_first_text_tries_paths_in_order():
    data = {"title": "", "name": {"label": "X"}}
    assert first_text(data, ("title", ("name", "label"))) == "X"


def test_review_text_aliases_in_fixed_order():
    raw = {"description": "d", "body": "b", "comment": "c"}
    assert resolve(raw, REVIEW_FIELDS)["text"] == "c"
    assert resolve({"reviewBody": "rb", "description": "d"}, REVIEW_FIELDS)["text"] == "rb"


def test_resolve_fills_missing_fields_with_none():
    resolved = resolve({"reviewId": 42}, REVIEW_FIELDS)
    assert resolved["id"] == "42"
    assert set(resolved) == set(REVIEW_FIELDS)
    assert resolved["text"] is None


def test_resolve_skips_alias_that_fails_coercion():
    resolved = resolve({"score": "great", "rating": "4"}, REVIEW_FIELDS)
    assert resolved["score"] == 4


def test_resolve_keeps_strategy_tag():
    resolved = resolve({"trackId": 1, "_strategy": "structured_data"}, APP_FIELDS)
    assert resolved["_strategy"] == "structured_data"


def test_score_is_clamped_to_unknown():
    assert score(5) == 5
    assert score("3.0") == 3
    assert score(7) is None
    assert score(0) is None
    assert score({"ratingValue": "4"}) == 4
    assert score("n/a") is None


def test_count_rejects_negative():
    assert count("1,234") == 1234
    assert count(-3) is None
    assert count("many") is None


def test_url_coercion():
    assert url("https://x/y.png") == "https://x/y.png"
    assert url({"href": "https://x"}) == "https://x"
    assert url(["https://a", "https://b"]) == "https://a"
    assert url("javascript:void(0)") is None
    assert url({"attributes": {"href": "https://nested"}}) is None


def test_build_review_defaults():
    review = build_review({})
    assert isinstance(review, Review)
    assert review.user_name == "Anonymous"
    assert review.score == 0
    assert review.thumbs_up == 0
    assert review.text is None
    assert review.date is None


def test_review_out_of_range_values_are_reset():
    review = Review(score=9, thumbs_up=-4, user_name="   ")
    assert review.score == 0
    assert review.thumbs_up == 0
    assert review.user_name == "Anonymous"


def test_build_app_requires_an_identifier():
    assert build_app(resolve({"trackName": "No id"}, APP_FIELDS)) is None


def test_build_app_free_follows_price():
    paid = build_app(resolve({"trackId": 1, "price": "2.99"}, APP_FIELDS), Store.APP_STORE)
    free = build_app(resolve({"trackId": 2, "price": 0}, APP_FIELDS), Store.APP_STORE)
    unknown = build_app(resolve({"trackId": 3}, APP_FIELDS), Store.APP_STORE)

    assert paid.price == 2.99 and paid.free is False
    assert free.price == 0.0 and free.free is True
    assert unknown.price == 0.0 and unknown.free is True
    assert paid.source == "app_store"


def test_app_constructor_enforces_free_invariant():
    app = App(app_id="com.x", price=-1, free=False)
    assert app.price == 0.0
    assert app.free is True


def test_build_app_as_list_entry():
    entry = build_app(resolve({"appId": "com.x", "rank": 4}, APP_FIELDS), Store.GOOGLE_PLAY, cls=ListEntry)
    assert isinstance(entry, ListEntry)
    assert entry.rank == 4
    assert entry.screenshots == []
    assert entry.to_dict()["rank"] == 4


def test_app_to_dict_is_camel_case_and_complete():
    data = App(id=1, app_id="com.x", price_text="Free").to_dict()
    assert data["appId"] == "com.x"
    assert data["priceText"] == "Free"
    assert data["developer"] == {"id": None, "name": None, "url": None}
    assert data["rating"] == {"average": None, "count": 0}
    assert data["ipadScreenshots"] == []
    assert data["source"] == "unknown"


def test_build_permission_drops_nameless():
    assert build_permission({"name": None, "type": "x"}) is None
    assert build_permission({"name": "Camera", "type": None}).to_dict() == {"name": "Camera", "type": None}


def test_build_data_safety_item_classifies_type():
    item = build_data_safety_item({"data": "Approximate location", "optional": None, "purpose": None, "type": None})
    assert item.type == DataSafetyType.LOCATION.value
    assert item.optional is False
    assert build_data_safety_item({"data": "Something else"}).type is None


def test_build_suggestion_defaults_priority():
    assert build_suggestion({"term": "maps", "priority": None}).priority == 0
    assert build_suggestion({"term": None}) is None
