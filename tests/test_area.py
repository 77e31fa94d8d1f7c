from openrisk.core.area import AREA_RULES, classify_area_type, store_mix
from openrisk.core.models import AreaType
from openrisk.core.validation import validate_request

from conftest import make_payload

COMMERCIAL_STREET = {"cafe": 10, "restaurant_korean": 12, "bar": 6, "convenience": 2}


def classify(**overrides):
    return classify_area_type(validate_request(make_payload(**overrides)))


class TestStoreMix:
    def test_ratios(self):
        mix = store_mix({"cafe": 3, "pharmacy": 1, "gym": 1}, 10)
        assert mix.commercial_ratio == 0.3
        assert mix.residential_ratio == 0.1
        assert mix.total == 10

    def test_zero_total(self):
        mix = store_mix({"cafe": 3}, 0)
        assert mix == (0.0, 0.0, 0)


class TestRules:
    def test_sparse_residential_street(self):
        assert classify() == AreaType.RESIDENTIAL

    def test_weekend_heavy_is_special(self):
        assert classify(traffic={"weekend_ratio": 0.55}) == AreaType.SPECIAL

    def test_station_hotspot_is_special(self):
        assert classify(
            competition={"total": 30},
            store_counts={"cafe": 12, "restaurant_korean": 10, "bar": 2},
            anchors={"has_any_anchor": True, "subway": {"name": "Hongdae", "distance": 150}},
        ) == AreaType.SPECIAL

    def test_station_at_300m_is_not_a_hotspot(self):
        assert classify(
            competition={"total": 30},
            store_counts={"cafe": 12, "restaurant_korean": 10, "bar": 2},
            traffic={"index": 20},
            anchors={"has_any_anchor": True, "subway": {"name": "Hongdae", "distance": 300}},
        ) == AreaType.MIXED

    def test_busy_commercial(self):
        assert classify(competition={"total": 30}, store_counts=COMMERCIAL_STREET, traffic={"index": 35}) == AreaType.COMMERCIAL

    def test_quiet_commercial_mix_is_mixed(self):
        assert classify(competition={"total": 30}, store_counts=COMMERCIAL_STREET, traffic={"index": 30}) == AreaType.MIXED

    def test_residential_share(self):
        assert classify(
            competition={"total": 40},
            store_counts={"convenience": 10, "laundry": 8, "cafe": 5},
            traffic={"index": 20},
        ) == AreaType.RESIDENTIAL

    def test_zero_total_counts_as_sparse(self):
        assert classify(competition={"total": 0}, store_counts={}) == AreaType.RESIDENTIAL

    def test_rule_order(self):
        assert [r.name for r in AREA_RULES] == [
            "weekend_heavy", "station_hotspot", "busy_commercial", "sparse_or_residential", "mixed",
        ]


class TestPurity:
    def test_idempotent_and_location_independent(self):
        a = validate_request(make_payload(stable_id="cell-a"))
        b = validate_request(make_payload(stable_id="cell-b"))
        assert classify_area_type(a) == classify_area_type(a) == classify_area_type(b)
