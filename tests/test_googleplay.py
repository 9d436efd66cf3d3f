"""Tests for Google Play adapters (HTML pages and suggest JSON)."""

import json

from appscout.adapters.googleplay import (
    DETAILS_URL,
    FALLBACK_CATEGORIES,
    PlayAppAdapter,
    PlayCategoriesAdapter,
    PlayDataSafetyAdapter,
    PlayListAdapter,
    PlayPermissionsAdapter,
    PlayReviewsAdapter,
    PlaySimilarAdapter,
    PlaySuggestAdapter,
    pagination_token,
)
from appscout.extract.pipeline import HEURISTIC_TEXT, STRUCTURED_DATA


REVIEW_KEYS = {
    "id",
    "userName",
    "userUrl",
    "userImage",
    "score",
    "title",
    "text",
    "date",
    "version",
    "replyText",
    "replyDate",
    "thumbsUp",
    "url",
}


# ---- App details ----

APP_PAGE = """
<html><head>
<meta property="og:title" content="OG Title">
<meta property="og:description" content="A fun puzzle game">
<script type="application/ld+json">
{"@context": "https://schema.org", "@type": "SoftwareApplication",
 "name": "LD Title",
 "url": "https://play.google.com/store/apps/details?id=com.example.app",
 "applicationCategory": "GAME_PUZZLE",
 "aggregateRating": {"@type": "AggregateRating", "ratingValue": "4.5", "ratingCount": "1200"},
 "offers": [{"@type": "Offer", "price": "0", "priceCurrency": "USD"}],
 "author": {"@type": "Person", "name": "Example Dev", "url": "https://play.google.com/store/apps/dev?id=123"}}
</script>
</head><body>
<div itemprop="numDownloads">1,000,000+</div>
</body></html>
"""


def test_structured_data_beats_meta_title():
    app = PlayAppAdapter().extract_one(APP_PAGE)

    assert app.title == "LD Title"
    assert app.app_id == "com.example.app"
    assert app.url == "https://play.google.com/store/apps/details?id=com.example.app"
    assert app.rating.average == 4.5
    assert app.rating.count == 1200
    assert app.developer.name == "Example Dev"
    assert app.category.name == "GAME_PUZZLE"
    assert app.free is True
    assert app.source == "google_play"


def test_markup_fills_fields_structured_data_lacks():
    app = PlayAppAdapter().extract_one(APP_PAGE)
    assert app.description == "A fun puzzle game"
    assert app.summary == "A fun puzzle game"
    assert app.installs == "1000000"


def test_markup_only_page():
    html = """
    <html><head>
    <meta property="og:title" content="Only Markup">
    <meta property="og:image" content="https://img.example/icon.png">
    </head><body>
    <a href="/store/apps/details?id=com.markup.only">Install</a>
    <span class="price">$2.99</span>
    </body></html>
    """
    app = PlayAppAdapter().extract_one(html)

    assert app.app_id == "com.markup.only"
    assert app.title == "Only Markup"
    assert app.url == DETAILS_URL.format("com.markup.only")
    assert app.artwork.icon == "https://img.example/icon.png"
    assert app.price == 2.99
    assert app.free is False


def test_page_without_identifier_yields_no_app():
    assert PlayAppAdapter().extract_one("<html><body><h1>Nothing</h1></body></html>") is None


def test_embedded_script_object():
    html = """
    <html><body>
    <script>window.__APP__ = {"app": {"appId": "com.script.app", "title": "Script App",
      "androidVersion": "8.0 and up", "offersIAP": true}};</script>
    </body></html>
    """
    app = PlayAppAdapter().extract_one(html)
    assert app.app_id == "com.script.app"
    assert app.title == "Script App"
    assert app.min_os_version == "8.0 and up"
    assert app.in_app_purchases is True


# ---- Reviews ----

def _review_block(review_id, author, stars, text):
    return (
        f'<div data-review-id="{review_id}">'
        f'<span class="author-name">{author}</span>'
        f'<div aria-label="Rated {stars} stars"></div>'
        f'<span class="review-body">{text}</span>'
        "</div>"
    )


def test_duplicate_review_blocks_merge_by_id():
    blocks = [
        _review_block("r1", "Ann", 5, "Great"),
        _review_block("r2", "Ben", 4, "Good"),
        _review_block("r3", "Bob", 3, "Okay"),
        _review_block("r4", "Cat", 2, "Meh"),
        _review_block("r3", "BOB", 3, "Okay"),
        _review_block("r5", "Dan", 1, "Bad"),
    ]
    html = "<html><body>" + "".join(blocks) + "</body></html>"

    reviews = PlayReviewsAdapter().extract(html)

    assert [r.id for r in reviews] == ["r1", "r2", "r3", "r4", "r5"]
    assert reviews[2].user_name == "Bob"
    assert reviews[0].score == 5
    assert reviews[0].text == "Great"


def test_structured_and_markup_review_fields_combine():
    html = """
    <html><head>
    <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "Review", "@id": "r1",
     "author": {"@type": "Person", "name": "Ann"}, "reviewBody": "Works well"}
    </script>
    </head><body>
    <div data-review-id="r1"><div aria-label="Rated 5 stars"></div></div>
    </body></html>
    """
    reviews = PlayReviewsAdapter().extract(html)

    assert len(reviews) == 1
    assert reviews[0].text == "Works well"
    assert reviews[0].score == 5
    assert reviews[0].user_name == "Ann"


def _jsonld_reviews(n):
    reviews = [
        {
            "@type": "Review",
            "@id": f"rev-{i}",
            "author": {"@type": "Person", "name": f"User {i}"},
            "datePublished": "2024-03-01",
            "reviewBody": f"Review number {i}",
            "reviewRating": {"@type": "Rating", "ratingValue": str(i % 5 + 1)},
        }
        for i in range(n)
    ]
    app = {"@context": "https://schema.org", "@type": "SoftwareApplication", "name": "X", "review": reviews}
    return f'<script type="application/ld+json">{json.dumps(app)}</script>'


def test_each_structured_review_becomes_one_record():
    html = "<html><head>" + _jsonld_reviews(3) + "</head><body></body></html>"
    reviews = PlayReviewsAdapter().extract(html)

    assert len(reviews) == 3
    for i, review in enumerate(reviews):
        data = review.to_dict()
        assert set(data) == REVIEW_KEYS
        assert data["id"] == f"rev-{i}"
        assert data["userName"] == f"User {i}"
        assert data["score"] == i % 5 + 1
        assert data["date"] == "2024-03-01"


def test_malformed_script_fragment_is_skipped():
    head = "<html><head>" + _jsonld_reviews(2) + "</head><body>"
    broken = '<script>var state = {"reviews": [{"reviewId": "zzz", broken</script>'

    clean = PlayReviewsAdapter().run(head + "</body></html>")
    noisy = PlayReviewsAdapter().run(head + broken + "</body></html>")

    assert clean.to_dicts() == noisy.to_dicts()
    assert len(noisy.records) == 2
    assert not noisy.failures


def test_review_extraction_is_idempotent():
    html = "<html><head>" + _jsonld_reviews(4) + "</head><body>" + _review_block("x", "Zed", 3, "Hm") + "</body></html>"
    adapter = PlayReviewsAdapter()
    first = json.dumps(adapter.run(html).to_dicts(), sort_keys=True)
    second = json.dumps(adapter.run(html).to_dicts(), sort_keys=True)
    assert first == second


def test_script_reviews():
    html = """
    <html><body>
    <script>AF_init({"reviews": [{"reviewId": "s1", "userName": "Eve", "text": "From script", "score": 4}]});</script>
    </body></html>
    """
    reviews = PlayReviewsAdapter().extract(html)
    assert [(r.id, r.user_name, r.text, r.score) for r in reviews] == [("s1", "Eve", "From script", 4)]


def test_app_object_in_script_is_not_a_review():
    html = (
        '<html><body><script>window.__APP__ = {"app": {"appId": "com.x", "title": "Some App", '
        '"rating": 4.3}};</script></body></html>'
    )
    assert PlayReviewsAdapter().extract(html) == []


def test_pagination_token():
    assert pagination_token('<div data-pagination-token="tok123"></div>') == "tok123"
    assert pagination_token('<script>x = {"nextPaginationToken": "abc"}</script>') == "abc"
    assert pagination_token("<html></html>") is None


# ---- Permissions ----

PERMISSIONS_PAGE = """
<html><body>
<div class="permissions">
  <div class="permission"><span class="permission-name">Camera</span><span class="permission-type">Hardware</span></div>
  <div class="permission"><span class="permission-name">Location</span></div>
  <div class="permission"><span class="permission-name">camera</span></div>
</div>
</body></html>
"""


def test_permissions_from_markup_are_deduplicated():
    permissions = PlayPermissionsAdapter().extract(PERMISSIONS_PAGE)
    assert [p.to_dict() for p in permissions] == [
        {"name": "Camera", "type": "Hardware"},
        {"name": "Location", "type": None},
    ]


def test_permission_phrase_heuristic():
    html = "<html><body><p>This permission allows the app to access your contacts.</p></body></html>"
    extraction = PlayPermissionsAdapter().run(html)

    assert [p.name for p in extraction.records] == ["your contacts"]
    assert not extraction.failures


def test_structured_permissions_skip_heuristic():
    html = """
    <html><head>
    <script type="application/ld+json">
    {"@type": "SoftwareApplication", "name": "X", "permissions": "Camera, Microphone, Storage"}
    </script>
    </head><body><p>The permission allows the app to read your calendar events.</p></body></html>
    """
    extraction = PlayPermissionsAdapter().run(html)

    assert [p.name for p in extraction.records] == ["Camera", "Microphone", "Storage"]
    heuristic = [o for o in extraction.outcomes if o.kind == HEURISTIC_TEXT]
    assert heuristic and heuristic[0].skipped


def test_repeated_permission_does_not_close_heuristic_gate():
    html = """
    <html><head>
    <meta name="permission" content="Camera">
    <script type="application/ld+json">
    {"@type": "SoftwareApplication", "name": "X", "permissions": ["Camera"]}
    </script>
    </head><body>
    <div class="permissions"><div class="permission"><span class="permission-name">Camera</span></div></div>
    <p>This permission allows the app to access your contacts.</p>
    </body></html>
    """
    extraction = PlayPermissionsAdapter().run(html)

    assert extraction.candidates >= 3
    assert [p.name for p in extraction.records] == ["Camera", "your contacts"]
    heuristic = [o for o in extraction.outcomes if o.kind == HEURISTIC_TEXT]
    assert heuristic and not heuristic[0].skipped


# ---- Data safety ----

DATA_SAFETY_PAGE = """
<html><body>
<a href="https://example.com/privacy">Privacy policy</a>
<div class="data-safety">
  <div class="data-shared"><span>Approximate location</span><span class="purpose">Analytics</span></div>
  <div class="data-collected" data-optional="true"><span>Email address</span></div>
  <div class="security-practices"><h3>Data is encrypted in transit</h3><p>Your data is transferred over a secure connection</p></div>
</div>
</body></html>
"""


def test_data_safety_from_markup():
    safety = PlayDataSafetyAdapter().extract_one(DATA_SAFETY_PAGE)

    assert safety.to_dict() == {
        "dataShared": [
            {"data": "Approximate location", "optional": False, "purpose": "Analytics", "type": "Location"}
        ],
        "dataCollected": [
            {"data": "Email address", "optional": True, "purpose": None, "type": "Personal info"}
        ],
        "securityPractices": [
            {
                "practice": "Data is encrypted in transit",
                "description": "Your data is transferred over a secure connection",
            }
        ],
        "privacyPolicyUrl": "https://example.com/privacy",
    }


def test_data_safety_from_script():
    html = """
    <html><body>
    <script>AF_init({"dataSafety": {"dataShared": ["Device ID", "Device ID"], "privacyPolicyUrl": "https://x.example/privacy"}});</script>
    </body></html>
    """
    safety = PlayDataSafetyAdapter().extract_one(html)
    assert [i.data for i in safety.data_shared] == ["Device ID"]
    assert safety.data_collected == []
    assert safety.privacy_policy_url == "https://x.example/privacy"


def test_data_safety_absent():
    assert PlayDataSafetyAdapter().extract_one("<html><body><p>Hello</p></body></html>") is None


# ---- Categories ----

def test_categories_from_links_sorted_and_unique():
    html = """
    <html><body>
    <a href="/store/apps/category/GAME">Games</a>
    <a href="/store/apps/category/BUSINESS?hl=en">Business</a>
    <a href="https://play.google.com/store/apps/category/GAME">Games again</a>
    </body></html>
    """
    assert PlayCategoriesAdapter().extract(html) == ["BUSINESS", "GAME"]


def test_categories_fallback_when_page_has_none():
    categories = PlayCategoriesAdapter().extract("<html><body>No links</body></html>")
    assert categories == sorted(FALLBACK_CATEGORIES)
    assert len(categories) == len(set(categories))


# ---- Suggestions ----

def test_suggestions_sorted_by_priority():
    data = [{"term": "a", "priority": 2}, {"term": "b", "priority": 5}]
    assert [s.term for s in PlaySuggestAdapter().extract(data)] == ["b", "a"]


def test_suggestions_from_plain_terms():
    assert [s.to_dict() for s in PlaySuggestAdapter().extract('["maps", "mail"]')] == [
        {"term": "maps", "priority": 0},
        {"term": "mail", "priority": 0},
    ]


# ---- Lists / similar ----

LIST_PAGE = """
<html><body>
<div><a href="/store/apps/details?id=com.one"><img src="https://img.example/one.png"><span title="One App"></span> 4.5 stars</a></div>
<a href="/store/apps/details?id=com.two" title="Two App">Two</a>
<a href="/store/apps/details?id=com.one">again</a>
</body></html>
"""


def test_list_entries_ranked_by_first_appearance():
    entries = PlayListAdapter().extract(LIST_PAGE)

    assert [(e.app_id, e.rank, e.title) for e in entries] == [
        ("com.one", 1, "One App"),
        ("com.two", 2, "Two App"),
    ]
    assert entries[0].rating.average == 4.5
    assert entries[0].artwork.icon == "https://img.example/one.png"
    assert entries[0].url == DETAILS_URL.format("com.one")
    assert entries[1].to_dict()["rank"] == 2


def test_list_structured_data_comes_first():
    html = """
    <html><head>
    <script type="application/ld+json">
    {"@type": "ItemList", "itemListElement": [
      {"@type": "ListItem", "item": {"@type": "SoftwareApplication", "name": "Listed",
        "url": "https://play.google.com/store/apps/details?id=com.listed"}}
    ]}
    </script>
    </head><body>
    <a href="/store/apps/details?id=com.other" title="Other">Other</a>
    </body></html>
    """
    extraction = PlayListAdapter().run(html)
    assert [e.app_id for e in extraction.records] == ["com.listed", "com.other"]
    assert extraction.records[0].title == "Listed"
    assert extraction.outcomes[0].kind == STRUCTURED_DATA


SIMILAR_PAGE = """
<html><body>
<a href="/store/apps/details?id=com.self" title="Self">Self</a>
<div class="similar">
  <a href="/store/apps/details?id=com.a" title="A">A</a>
  <a href="/store/apps/details?id=com.self" title="Self">Self</a>
</div>
<section class="you-might-also-like"><a href="/store/apps/details?id=com.b" title="B">B</a></section>
</body></html>
"""


def test_similar_apps_only_from_similar_sections():
    apps = PlaySimilarAdapter().extract(SIMILAR_PAGE)
    assert [a.app_id for a in apps] == ["com.a", "com.self", "com.b"]
    assert apps[0].title == "A"
