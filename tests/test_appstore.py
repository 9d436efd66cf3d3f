"""Tests for App Store adapters (iTunes JSON, RSS feeds, apps.apple.com HTML)."""

import json

from appscout.adapters.appstore import (
    AppStoreAppAdapter,
    AppStoreListAdapter,
    AppStoreReviewsAdapter,
    AppStoreSimilarAdapter,
    AppStoreSuggestAdapter,
    parse_privacy,
    parse_ratings,
    parse_version_history,
)
from appscout.models import App, ListEntry


LOOKUP = {
    "resultCount": 1,
    "results": [
        {
            "wrapperType": "software",
            "kind": "software",
            "trackId": 553834731,
            "bundleId": "com.midasplayer.apps.candycrushsaga",
            "trackName": "Candy Crush Saga",
            "trackViewUrl": "https://apps.apple.com/us/app/candy-crush-saga/id553834731",
            "description": "Start playing Candy Crush Saga today!",
            "releaseNotes": "Bug fixes",
            "version": "1.250.0",
            "releaseDate": "2012-11-14T14:41:32Z",
            "currentVersionReleaseDate": "2024-05-01T07:00:00Z",
            "price": 0.0,
            "currency": "USD",
            "formattedPrice": "Free",
            "artistId": 526656015,
            "artistName": "King",
            "artistViewUrl": "https://apps.apple.com/us/developer/king/id526656015",
            "primaryGenreId": 6014,
            "primaryGenreName": "Games",
            "genres": ["Games", "Puzzle"],
            "averageUserRating": 4.7,
            "userRatingCount": 3000000,
            "artworkUrl60": "https://is1.example/60.png",
            "artworkUrl100": "https://is1.example/100.png",
            "artworkUrl512": "https://is1.example/512.png",
            "screenshotUrls": ["https://is1.example/s1.png", "https://is1.example/s2.png"],
            "ipadScreenshotUrls": [],
            "contentAdvisoryRating": "4+",
            "fileSizeBytes": "312000000",
            "minimumOsVersion": "12.0",
            "languageCodesISO2A": ["EN", "FR"],
            "supportedDevices": ["iPhone5s-iPhone5s"],
        }
    ],
}


def test_lookup_maps_to_canonical_app():
    app = AppStoreAppAdapter().extract_one(LOOKUP)

    assert isinstance(app, App)
    assert app.id == 553834731
    assert app.app_id == "com.midasplayer.apps.candycrushsaga"
    assert app.title == "Candy Crush Saga"
    assert app.free is True and app.price == 0.0
    assert app.price_text == "Free"
    assert app.developer.id == "526656015"
    assert app.developer.name == "King"
    assert app.category.id == "6014"
    assert app.category.genres == ["Games", "Puzzle"]
    assert app.rating.average == 4.7
    assert app.rating.count == 3000000
    assert app.artwork.icon == "https://is1.example/512.png"
    assert app.artwork.icon60 == "https://is1.example/60.png"
    assert app.screenshots == ["https://is1.example/s1.png", "https://is1.example/s2.png"]
    assert app.ipad_screenshots == []
    assert app.content_rating == "4+"
    assert app.min_os_version == "12.0"
    assert app.languages == ["EN", "FR"]
    assert app.released == "2012-11-14T14:41:32Z"
    assert app.updated == "2024-05-01T07:00:00Z"
    assert app.source == "app_store"


def test_lookup_accepts_json_text_and_bytes():
    text = json.dumps(LOOKUP)
    assert AppStoreAppAdapter().extract_one(text).id == 553834731
    assert AppStoreAppAdapter().extract_one(text.encode("utf-8")).id == 553834731


def test_empty_lookup_yields_none():
    assert AppStoreAppAdapter().extract_one({"resultCount": 0, "results": []}) is None
    assert AppStoreAppAdapter().extract_one("not json") is None


def test_developer_lookup_skips_artist_record():
    data = {
        "results": [
            {"wrapperType": "artist", "artistId": 1, "artistName": "King"},
            {"wrapperType": "software", "kind": "software", "trackId": 10, "bundleId": "a", "trackName": "A"},
            {"wrapperType": "software", "kind": "software", "trackId": 11, "bundleId": "b", "trackName": "B"},
        ]
    }
    apps = AppStoreAppAdapter(software_only=True).extract(data)
    assert [a.id for a in apps] == [10, 11]


def test_duplicate_results_are_merged():
    data = {
        "results": [
            {"trackId": 1, "bundleId": "com.x", "trackName": "X"},
            {"trackId": 1, "bundleId": "com.x", "description": "More detail"},
        ]
    }
    extraction = AppStoreAppAdapter().run(data)
    assert len(extraction.records) == 1
    assert extraction.records[0].description == "More detail"
    assert extraction.duplicates_merged == 1


def _chart_entry(app_id, bundle, name):
    return {
        "im:name": {"label": name},
        "im:image": [{"label": "https://img/53.png"}, {"label": "https://img/100.png"}],
        "summary": {"label": f"{name} summary"},
        "im:price": {"label": "Get", "attributes": {"amount": "0.00000", "currency": "USD"}},
        "im:artist": {"label": "Dev", "attributes": {"href": "https://apps.apple.com/us/developer/dev/id77"}},
        "id": {
            "label": f"https://apps.apple.com/us/app/x/id{app_id}",
            "attributes": {"im:id": str(app_id), "im:bundleId": bundle},
        },
        "category": {"attributes": {"im:id": "6014", "label": "Games"}},
        "im:releaseDate": {"label": "2020-01-01T00:00:00-07:00"},
    }


def test_chart_feed_yields_ranked_list_entries():
    feed = {"feed": {"entry": [
        _chart_entry(1, "com.one", "One"),
        _chart_entry(2, "com.two", "Two"),
        _chart_entry(3, "com.three", "Three"),
    ]}}
    entries = AppStoreListAdapter().extract(feed)

    assert [e.rank for e in entries] == [1, 2, 3]
    assert all(isinstance(e, ListEntry) for e in entries)
    first = entries[0]
    assert first.id == 1
    assert first.app_id == "com.one"
    assert first.title == "One"
    assert first.developer.id == "77"
    assert first.category.name == "Games"
    assert first.artwork.icon == "https://img/100.png"
    assert first.free is True
    assert first.screenshots == []


def test_chart_feed_with_single_entry_object():
    feed = {"feed": {"entry": _chart_entry(5, "com.five", "Five")}}
    entries = AppStoreListAdapter().extract(feed)
    assert [(e.id, e.rank) for e in entries] == [(5, 1)]


def _review_entry(review_id, name, rating, text):
    return {
        "author": {"uri": {"label": "https://itunes.apple.com/us/reviews/id999"}, "name": {"label": name}},
        "im:version": {"label": "1.2"},
        "im:rating": {"label": str(rating)},
        "id": {"label": review_id},
        "title": {"label": "Title"},
        "content": {"label": text, "attributes": {"type": "text"}},
        "im:voteCount": {"label": "3"},
        "updated": {"label": "2024-02-01T10:00:00-07:00"},
    }


REVIEW_FEED = {"feed": {"entry": [
    {"im:name": {"label": "The App"}, "id": {"label": "https://apps.apple.com/app/id1"}},
    _review_entry("9001", "Alice", 5, "Love it"),
    _review_entry("9002", "Bob", 2, "Crashes"),
]}}


def test_reviews_feed_skips_app_entry():
    reviews = AppStoreReviewsAdapter().extract(REVIEW_FEED)

    assert [r.id for r in reviews] == ["9001", "9002"]
    alice = reviews[0]
    assert alice.user_name == "Alice"
    assert alice.user_url == "https://itunes.apple.com/us/reviews/id999"
    assert alice.score == 5
    assert alice.text == "Love it"
    assert alice.title == "Title"
    assert alice.version == "1.2"
    assert alice.thumbs_up == 3
    assert alice.date == "2024-02-01T10:00:00-07:00"


def test_reviews_feed_without_entries():
    assert AppStoreReviewsAdapter().extract({"feed": {}}) == []
    assert AppStoreReviewsAdapter().extract({"feed": {"entry": [{"im:name": {"label": "only app"}}]}}) == []


def test_suggest_hints_sorted_by_priority():
    data = {"hints": [{"term": "maps", "priority": 1}, {"term": "mail", "priority": 9}, {"term": "music"}]}
    terms = [(s.term, s.priority) for s in AppStoreSuggestAdapter().extract(data)]
    assert terms == [("mail", 9), ("maps", 1), ("music", 0)]


def test_ratings_from_app():
    ratings = parse_ratings(AppStoreAppAdapter().extract_one(LOOKUP))
    assert ratings.to_dict() == {
        "ratings": 3000000,
        "average": 4.7,
        "histogram": {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0},
    }


PRIVACY = {
    "data": [{
        "attributes": {
            "privacyDetails": {
                "managePrivacyChoicesUrl": "https://example.com/choices",
                "privacyTypes": [
                    {
                        "privacyType": "Data Used to Track You",
                        "identifier": "DATA_USED_TO_TRACK_YOU",
                        "description": "The following data may be used to track you",
                        "dataCategories": [
                            {"dataCategory": "Identifiers", "identifier": "IDENTIFIERS", "dataTypes": ["Device ID"]}
                        ],
                        "purposes": [],
                    }
                ],
            }
        }
    }]
}


def test_privacy_labels():
    privacy = parse_privacy(PRIVACY)
    assert privacy.manage_privacy_choices_url == "https://example.com/choices"
    assert len(privacy.privacy_types) == 1
    kind = privacy.privacy_types[0]
    assert kind.identifier == "DATA_USED_TO_TRACK_YOU"
    assert kind.data_categories[0].data_types == ["Device ID"]
    assert privacy.to_dict()["privacyTypes"][0]["dataCategories"][0]["dataCategory"] == "Identifiers"


def test_privacy_of_non_object_is_none():
    assert parse_privacy("garbage") is None
    assert parse_privacy([1, 2]) is None


def test_version_history():
    data = {"versionHistory": [
        {"versionDisplay": "2.0", "releaseNotes": "New UI", "releaseDate": "2024-01-01", "releaseTimestamp": "2024-01-01T00:00:00Z"},
        {"versionDisplay": "1.0", "releaseDate": "2023-01-01"},
        "junk",
    ]}
    history = parse_version_history(data)
    assert [v.version_display for v in history] == ["2.0", "1.0"]
    assert history[0].release_notes == "New UI"
    assert history[1].release_notes is None
    assert parse_version_history({"nothing": True}) == []


SIMILAR_PAGE = """
<html><head>
<script type="application/ld+json">
{"@context": "https://schema.org", "@type": "SoftwareApplication", "name": "Friend App",
 "url": "https://apps.apple.com/us/app/friend-app/id222"}
</script>
</head><body>
<a href="https://apps.apple.com/us/app/friend-app/id222">Friend App</a>
<a href="https://apps.apple.com/us/app/other/id333">Other</a>
<a href="https://apps.apple.com/app/id444">Short link</a>
</body></html>
"""


def test_similar_apps_from_html():
    apps = AppStoreSimilarAdapter().extract(SIMILAR_PAGE)
    assert [a.id for a in apps] == [222, 333, 444]
    assert apps[0].title == "Friend App"
    assert apps[1].url == "https://apps.apple.com/app/id333"
