"""
Unit tests for the dedup policy (identity keys, scoring, merging).
"""

from types import SimpleNamespace

from booth_ingest.services.dedup import (
    completeness_score,
    identity_key,
    merge_fields,
    pick_merge_target,
    slugify,
)


class TestIdentityKey:
    def test_normalizes_case_and_whitespace(self):
        assert identity_key("  Joe's   Bar ", "SPRINGFIELD") == "joe's bar|springfield"

    def test_missing_city(self):
        assert identity_key("Joe's Bar", None) == "joe's bar|"

    def test_same_key_across_sources(self):
        assert identity_key("Joe's Bar", "Springfield") == identity_key("joe's bar", " springfield")


class TestSlugify:
    def test_basic(self):
        assert slugify("Joe's Bar", "Springfield") == "joes-bar-springfield"

    def test_accents_folded(self):
        assert slugify("Café Öl", "Zürich") == "cafe-ol-zurich"

    def test_empty_falls_back(self):
        assert slugify("!!!", None) == "booth"


class TestCompletenessScore:
    def test_empty_record_scores_zero(self):
        assert completeness_score({"name": "Joe's Bar"}) == 0

    def test_street_address_scores(self):
        fields = {"name": "Joe's Bar", "address": "12 Main St"}
        # digit +15, differs from name +10, length 10/10 = +1
        assert completeness_score(fields) == 26

    def test_address_equal_to_name_gets_no_difference_bonus(self):
        fields = {"name": "Main Street Bar", "address": "main street bar"}
        assert completeness_score(fields) == 1.5

    def test_coordinates_need_both(self):
        assert completeness_score({"latitude": 40.1}) == 0
        assert completeness_score({"latitude": 40.1, "longitude": -73.9}) == 10

    def test_descriptive_fields(self):
        fields = {
            "description": "Vintage B&W booth",
            "photo_url": "https://img.example.com/1.jpg",
            "machine_type": "analog",
            "machine_model": "Model 21",
            "hours": "9-5",
            "cost": "$5",
            "postal_code": "12345",
            "state": "IL",
        }
        assert completeness_score(fields) == 20 + 15 + 8 + 8 + 7 + 5 + 3 + 2

    def test_original_slug_bonus(self):
        assert completeness_score({}, slug="joes-bar-springfield") == 12
        assert completeness_score({}, slug="joes-bar-springfield-2") == 0


class TestMergeFields:
    def test_fills_empty_fields(self):
        existing = {"name": "Joe's Bar", "address": None, "city": "Springfield"}
        incoming = {"name": "Joe's Bar", "address": "12 Main St", "city": "Springfield"}

        assert merge_fields(existing, incoming) == {"address": "12 Main St"}

    def test_never_writes_null(self):
        existing = {"name": "Joe's Bar", "address": "12 Main St", "hours": "9-5"}
        incoming = {"name": "Joe's Bar", "address": None, "hours": ""}

        assert merge_fields(existing, incoming) == {}

    def test_lower_score_does_not_overwrite(self):
        existing = {
            "name": "Joe's Bar",
            "address": "12 Main St",
            "description": "Great booth",
        }
        incoming = {"name": "Joe's Bar", "address": "Main St"}

        assert merge_fields(existing, incoming) == {}

    def test_strictly_higher_score_overwrites(self):
        existing = {"name": "Joe's Bar", "address": "Main St"}
        incoming = {
            "name": "Joe's Bar",
            "address": "12 Main St",
            "description": "Great booth",
        }

        changes = merge_fields(existing, incoming)

        assert changes == {"address": "12 Main St", "description": "Great booth"}

    def test_equal_scores_keep_existing(self):
        existing = {"name": "A", "cost": "$5"}
        incoming = {"name": "A", "cost": "$6"}

        assert merge_fields(existing, incoming) == {}

    def test_coordinates_move_as_pair(self):
        existing = {"name": "A", "latitude": 40.0, "longitude": None}
        incoming = {"name": "A", "latitude": 41.0, "longitude": -87.6}

        assert merge_fields(existing, incoming) == {"latitude": 41.0, "longitude": -87.6}

    def test_half_coordinates_ignored(self):
        existing = {"name": "A"}
        incoming = {"name": "A", "latitude": 41.0, "longitude": None}

        assert merge_fields(existing, incoming) == {}


class TestPickMergeTarget:
    def _booth(self, id_, slug, **fields):
        return SimpleNamespace(id=id_, slug=slug, name="Joe's Bar", **fields)

    def test_most_complete_wins(self):
        sparse = self._booth(1, "joes-bar-springfield")
        rich = self._booth(2, "joes-bar-springfield-2", address="12 Main St", description="Nice")

        assert pick_merge_target([sparse, rich]) is rich

    def test_oldest_wins_ties(self):
        first = self._booth(1, "joes-bar-springfield-3")
        second = self._booth(2, "joes-bar-springfield-2")

        assert pick_merge_target([second, first]) is first
