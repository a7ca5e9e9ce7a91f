import pytest

from app.models.mapping import EvidenceBullet, MappingProposal, RequirementItem
from app.services.mapping import (
    MAX_SUGGESTIONS,
    MIN_SCORE_THRESHOLD,
    TAG_MATCH_BONUS,
    build_items,
    calculate_score,
    has_requirements,
    normalize_text,
    propose_mapping,
    rank_bullets,
    tokenize,
)


def requirement(text):
    return RequirementItem(kind="requirement", text=text)


def responsibility(text):
    return RequirementItem(kind="responsibility", text=text)


class TestNormalizeText:
    """Lowercasing, punctuation and whitespace handling"""

    def test_lowercases_and_strips_punctuation(self):
        assert normalize_text("Hello, World!") == "hello world"

    def test_collapses_whitespace(self):
        assert normalize_text("  React \t\n  Developer  ") == "react developer"

    def test_punctuation_becomes_space(self):
        assert normalize_text("Node.js") == "node js"
        assert normalize_text("CI/CD") == "ci cd"

    def test_keeps_underscores_and_digits(self):
        assert normalize_text("snake_case v2") == "snake_case v2"

    def test_non_ascii_letters_are_treated_as_punctuation(self):
        assert normalize_text("café") == "caf"

    @pytest.mark.parametrize("value", [None, "", 42, ["text"]])
    def test_non_string_or_empty_returns_empty(self, value):
        assert normalize_text(value) == ""


class TestTokenize:
    """Stopword filtering and order preservation"""

    def test_drops_stopwords(self):
        assert tokenize("experience with react and the typescript") == ["experience", "react", "typescript"]

    def test_keeps_duplicates_in_order(self):
        assert tokenize("react react testing react") == ["react", "react", "testing", "react"]

    def test_only_stopwords(self):
        assert tokenize("the and of") == []

    def test_empty(self):
        assert tokenize("") == []


class TestCalculateScore:
    """Overlap counting and tag bonus"""

    def test_counts_overlap(self):
        assert calculate_score(["react", "typescript"], ["built", "react", "app"], []) == 1

    def test_repeated_item_tokens_count_each_time(self):
        assert calculate_score(["react", "react"], ["react"], None) == 2

    def test_bullet_token_frequency_does_not_matter(self):
        assert calculate_score(["react"], ["react", "react", "react"], None) == 1

    def test_tag_bonus(self):
        assert calculate_score(["react"], [], ["React"]) == TAG_MATCH_BONUS

    def test_tag_and_text_overlap_combine(self):
        assert calculate_score(["react"], ["react"], ["react"]) == 1 + TAG_MATCH_BONUS

    def test_missing_tags(self):
        assert calculate_score(["react"], ["vue"], None) == 0

    def test_no_item_tokens(self):
        assert calculate_score([], ["react"], ["react"]) == 0


class TestRankBullets:
    """Threshold, ordering and cap"""

    def test_filters_below_threshold(self):
        assert rank_bullets({"a": MIN_SCORE_THRESHOLD - 1, "b": MIN_SCORE_THRESHOLD}) == ["b"]

    def test_orders_by_score_then_id(self):
        assert rank_bullets({"c": 5, "b": 5, "a": 2, "d": 9}) == ["d", "b", "c"]

    def test_caps_results(self):
        scores = {f"b{i}": 10 for i in range(10)}
        assert len(rank_bullets(scores)) == MAX_SUGGESTIONS


class TestProposeMapping:
    """End-to-end proposal assembly"""

    def test_react_typescript_scenario(self):
        items = [requirement("React and TypeScript experience")]
        bullets = [
            EvidenceBullet(id="b1", text="Built React app with TypeScript", tags=["react", "typescript"]),
            EvidenceBullet(id="b2", text="Unrelated backend work", tags=[]),
        ]

        result = propose_mapping(items, bullets)

        assert len(result) == 1
        assert result[0].suggested_bullet_ids == ["b1"]
        assert set(result[0].score_by_bullet_id) == {"b1"}
        assert result[0].score_by_bullet_id["b1"] >= MIN_SCORE_THRESHOLD

    def test_empty_items(self):
        bullets = [EvidenceBullet(id="b1", text="anything")]
        assert propose_mapping([], bullets) == []
        assert propose_mapping(None, bullets) == []

    def test_no_bullets(self):
        result = propose_mapping([requirement("x")], [])

        assert [p.model_dump(by_alias=True) for p in result] == [{
            "itemKey": "requirement-0",
            "kind": "requirement",
            "text": "x",
            "suggestedBulletIds": [],
            "scoreByBulletId": {},
        }]

    def test_no_bullets_still_consumes_ordinals(self):
        result = propose_mapping([requirement("a"), requirement("b"), responsibility("c")], None)
        assert [p.item_key for p in result] == ["requirement-0", "requirement-1", "responsibility-0"]

    def test_item_keys_are_counted_per_kind(self):
        items = [
            responsibility("one"),
            requirement("two"),
            responsibility("three"),
            requirement("four"),
        ]
        bullets = [EvidenceBullet(id="b1", text="nothing in common")]

        result = propose_mapping(items, bullets)

        assert [p.item_key for p in result] == [
            "responsibility-0", "requirement-0", "responsibility-1", "requirement-1",
        ]

    def test_preserves_item_order_regardless_of_score(self):
        items = [requirement("cobol mainframe"), requirement("react frontend"), requirement("go")]
        bullets = [EvidenceBullet(id="b1", text="react frontend work", tags=["react"])]

        result = propose_mapping(items, bullets)

        assert [p.text for p in result] == ["cobol mainframe", "react frontend", "go"]
        assert result[0].suggested_bullet_ids == []
        assert result[1].suggested_bullet_ids == ["b1"]

    def test_single_weak_candidate_is_not_suggested(self):
        items = [requirement("python scripting")]
        bullets = [EvidenceBullet(id="b1", text="Wrote python tools")]

        result = propose_mapping(items, bullets)

        assert result[0].suggested_bullet_ids == []
        assert result[0].score_by_bullet_id == {}

    def test_caps_suggestions_and_scores(self):
        items = [requirement("react typescript testing")]
        bullets = [
            EvidenceBullet(id=f"b{i}", text="react typescript testing") for i in range(5)
        ]

        result = propose_mapping(items, bullets)

        assert result[0].suggested_bullet_ids == ["b0", "b1", "b2"]
        assert set(result[0].score_by_bullet_id) == {"b0", "b1", "b2"}

    def test_tie_break_prefers_smaller_id(self):
        items = [requirement("react typescript")]
        bullets = [
            EvidenceBullet(id="zeta", text="react typescript"),
            EvidenceBullet(id="alpha", text="react typescript"),
            EvidenceBullet(id="mid", text="react typescript"),
            EvidenceBullet(id="beta", text="react typescript"),
        ]

        result = propose_mapping(items, bullets)

        assert result[0].suggested_bullet_ids == ["alpha", "beta", "mid"]

    def test_scores_only_include_selected_ids(self):
        items = [requirement("react typescript graphql")]
        bullets = [
            EvidenceBullet(id="a", text="react typescript graphql"),
            EvidenceBullet(id="b", text="react typescript graphql"),
            EvidenceBullet(id="c", text="react typescript"),
            EvidenceBullet(id="d", text="react typescript"),
            EvidenceBullet(id="e", text="graphql"),
        ]

        result = propose_mapping(items, bullets)

        assert result[0].suggested_bullet_ids == ["a", "b", "c"]
        assert result[0].score_by_bullet_id == {"a": 3, "b": 3, "c": 2}

    def test_tag_bonus_dominance(self):
        items = [requirement("react frontend")]
        bullets = [
            EvidenceBullet(id="tagged", text="react frontend dashboard", tags=["react"]),
            EvidenceBullet(id="untagged", text="react frontend dashboard"),
        ]

        result = propose_mapping(items, bullets)
        scores = result[0].score_by_bullet_id

        assert scores["tagged"] - scores["untagged"] >= TAG_MATCH_BONUS
        assert result[0].suggested_bullet_ids[0] == "tagged"

    def test_tag_bonus_beats_text_overlap(self):
        items = [requirement("Experience with react and frontend development")]
        bullets = [
            EvidenceBullet(
                id="bullet-1", text="Worked on application development and deployment",
                tags=["react", "frontend"],
            ),
            EvidenceBullet(
                id="bullet-2", text="Built react frontend application with modern development practices",
                tags=[],
            ),
        ]

        result = propose_mapping(items, bullets)

        assert result[0].score_by_bullet_id["bullet-1"] > result[0].score_by_bullet_id["bullet-2"]

    def test_case_and_punctuation_insensitive(self):
        bullets_lower = [EvidenceBullet(id="b1", text="react developer")]
        bullets_title = [EvidenceBullet(id="b1", text="React Developer!")]
        items = [requirement("REACT Developer")]

        lower = propose_mapping(items, bullets_lower)
        title = propose_mapping(items, bullets_title)

        assert lower[0].score_by_bullet_id == title[0].score_by_bullet_id == {"b1": 2}

    def test_stopword_only_item_never_scores(self):
        items = [requirement("the and of")]
        bullets = [EvidenceBullet(id="b1", text="the and of", tags=["the", "and"])]

        result = propose_mapping(items, bullets)

        assert result[0].suggested_bullet_ids == []
        assert result[0].score_by_bullet_id == {}

    def test_symbol_only_item_has_no_suggestions(self):
        items = [requirement("!!! --- ???")]
        bullets = [EvidenceBullet(id="b1", text="react", tags=["react"])]

        assert propose_mapping(items, bullets)[0].suggested_bullet_ids == []

    def test_dotted_names_do_not_match_joined_names(self):
        items = [requirement("nodejs nodejs")]
        bullets = [EvidenceBullet(id="b1", text="Built services in Node.js")]

        result = propose_mapping(items, bullets)

        assert result[0].suggested_bullet_ids == []

    def test_title_and_impact_are_searchable(self):
        items = [requirement("dashboard latency")]
        bullets = [
            EvidenceBullet(id="b1", text="Shipped features", title="Dashboard", impact="Cut latency 40%"),
        ]

        result = propose_mapping(items, bullets)

        assert result[0].score_by_bullet_id == {"b1": 2}

    def test_absent_optional_fields(self):
        items = [requirement("")]
        bullets = [EvidenceBullet(id="b1", text="something", title=None, tags=None, impact=None)]

        result = propose_mapping(items, bullets)

        assert result[0].item_key == "requirement-0"
        assert result[0].text == ""
        assert result[0].suggested_bullet_ids == []

    def test_accepts_plain_mappings(self):
        items = [{"kind": "responsibility", "text": "Build React components"}]
        bullets = [{"id": "b1", "text": "React components library", "tags": ["react"]}]

        result = propose_mapping(items, bullets)

        assert isinstance(result[0], MappingProposal)
        assert result[0].item_key == "responsibility-0"
        assert result[0].suggested_bullet_ids == ["b1"]

    def test_non_string_item_text_is_treated_as_empty(self):
        items = [{"kind": "requirement", "text": 5}]
        bullets = [{"id": "b1", "text": "5 react", "tags": ["5"]}]

        result = propose_mapping(items, bullets)

        assert result[0].item_key == "requirement-0"
        assert result[0].text == ""
        assert result[0].suggested_bullet_ids == []
        assert result[0].score_by_bullet_id == {}

    def test_bullet_with_null_text_uses_title(self):
        items = [{"kind": "requirement", "text": "React developer"}]
        bullets = [{"id": "b1", "text": None, "title": "react developer", "impact": None}]

        result = propose_mapping(items, bullets)

        assert result[0].suggested_bullet_ids == ["b1"]
        assert result[0].score_by_bullet_id == {"b1": 2}

    def test_bullet_without_text_key(self):
        items = [{"kind": "responsibility", "text": "react dev"}]
        bullets = [{"id": "b1", "title": "react dev"}]

        result = propose_mapping(items, bullets)

        assert result[0].suggested_bullet_ids == ["b1"]
        assert result[0].score_by_bullet_id == {"b1": 2}

    def test_non_string_tags_are_ignored(self):
        items = [{"kind": "requirement", "text": "react"}]
        bullets = [{"id": "b1", "text": "unrelated work", "tags": [1, "react", None]}]

        result = propose_mapping(items, bullets)

        assert result[0].suggested_bullet_ids == ["b1"]
        assert result[0].score_by_bullet_id == {"b1": TAG_MATCH_BONUS}

    def test_non_string_title_and_impact_are_skipped(self):
        bullet = EvidenceBullet.model_validate(
            {"id": "b1", "text": "react", "title": 42, "impact": ["40%"], "tags": "react"}
        )

        assert bullet.title is None
        assert bullet.impact is None
        assert bullet.tags is None

    def test_deterministic(self):
        items = [requirement("react typescript testing"), responsibility("python api design")]
        bullets = [
            EvidenceBullet(id="b3", text="python api", tags=["python"]),
            EvidenceBullet(id="b1", text="react testing"),
            EvidenceBullet(id="b2", text="typescript testing", tags=["typescript"]),
        ]

        first = [p.model_dump_json(by_alias=True) for p in propose_mapping(items, bullets)]
        second = [p.model_dump_json(by_alias=True) for p in propose_mapping(items, list(reversed(bullets)))]

        assert first == second

    def test_counters_are_not_shared_between_calls(self):
        items = [requirement("a")]
        assert propose_mapping(items, [])[0].item_key == "requirement-0"
        assert propose_mapping(items, [])[0].item_key == "requirement-0"


class TestBuildItems:
    """Flattening extracted requirements"""

    def test_responsibilities_come_first(self):
        items = build_items({
            "requirements": ["Python"],
            "responsibilities": ["Own the API", "Mentor engineers"],
        })

        assert [(i.kind, i.text) for i in items] == [
            ("responsibility", "Own the API"),
            ("responsibility", "Mentor engineers"),
            ("requirement", "Python"),
        ]

    def test_skips_empty_and_non_string_entries(self):
        items = build_items({"responsibilities": ["", None, 3, "Ship"], "requirements": "not a list"})
        assert [i.text for i in items] == ["Ship"]

    def test_missing(self):
        assert build_items(None) == []
        assert build_items({}) == []


class TestHasRequirements:

    @pytest.mark.parametrize("value,expected", [
        (None, False),
        ({}, False),
        ({"responsibilities": [], "requirements": []}, False),
        ("not a mapping", False),
        ({"responsibilities": ["x"]}, True),
        ({"requirements": ["y"]}, True),
    ])
    def test_has_requirements(self, value, expected):
        assert has_requirements(value) is expected
