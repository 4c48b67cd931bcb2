"""
Tests for activity merging, ranking and activity filters.
"""

from conftest import at, make_location, observation

from location_history.collection import Locations
from location_history.models import Activity, ActivityObservation, ActivityType
from location_history.utils.activity import (
    filter_by_activity,
    is_similar_type,
    list_activities,
    merged_activities,
    seconds_delta,
    top_activities,
    top_activity,
    top_activity_type,
)


def _pairs(activities):
    return [(a.activity_type, a.confidence) for a in activities]


class TestActivityType:
    def test_known_label(self):
        assert ActivityType.from_label("ON_BICYCLE") is ActivityType.ON_BICYCLE

    def test_unknown_label(self):
        assert ActivityType.from_label("IN_ROAD_VEHICLE") is ActivityType.UNKNOWN
        assert ActivityType.from_label("still") is ActivityType.UNKNOWN
        assert ActivityType.from_label("") is ActivityType.UNKNOWN


class TestMergedActivities:
    def test_sums_same_type_across_observations(self):
        location = make_location(0, activities=[observation(0, STILL=80), observation(5, STILL=80)])

        merged = merged_activities(location)

        assert _pairs(merged.activities) == [("STILL", 160)]
        assert merged.timestamp == location.timestamp

    def test_ranked_by_confidence(self):
        location = make_location(0, activities=[
            observation(0, STILL=40, ON_FOOT=30),
            observation(1, ON_FOOT=30, IN_VEHICLE=5),
        ])
        assert _pairs(merged_activities(location).activities) == [
            ("ON_FOOT", 60),
            ("STILL", 40),
            ("IN_VEHICLE", 5),
        ]

    def test_unrecognized_labels_merge_into_unknown(self):
        location = make_location(0, activities=[observation(0, IN_RAIL_VEHICLE=20, UNKNOWN=10)])
        assert _pairs(merged_activities(location).activities) == [("UNKNOWN", 30)]

    def test_no_observations(self):
        assert merged_activities(make_location(0)).activities == []


class TestTopActivities:
    def test_observation_sums_within_itself(self):
        obs = ActivityObservation(timestamp=at(0), activities=[
            Activity(type="WALKING", confidence=20),
            Activity(type="STILL", confidence=50),
            Activity(type="WALKING", confidence=40),
        ])
        assert _pairs(top_activities(obs)) == [("WALKING", 60), ("STILL", 50)]

    def test_record_keeps_one_entry_per_observation(self):
        location = make_location(0, activities=[observation(0, STILL=80), observation(5, STILL=70)])
        assert _pairs(top_activities(location)) == [("STILL", 80), ("STILL", 70)]

    def test_ties_are_all_present(self):
        obs = observation(0, ON_FOOT=50, WALKING=50, STILL=10)
        ranked = top_activities(obs)
        assert {a.activity_type for a in ranked[:2]} == {"ON_FOOT", "WALKING"}
        assert ranked[0].confidence == ranked[1].confidence == 50

    def test_top_activity(self):
        assert top_activity(observation(0, STILL=10, IN_VEHICLE=90)).activity_type == "IN_VEHICLE"
        assert top_activity_type(observation(0, ON_BICYCLE=60)) is ActivityType.ON_BICYCLE

    def test_top_activity_when_empty(self):
        act = top_activity(make_location(0))
        assert act.activity_type == "UNKNOWN"
        assert act.confidence == 0
        assert top_activity_type(observation(0)) is ActivityType.UNKNOWN


class TestIsSimilarType:
    def test_top_within_other_top_three(self):
        a = observation(0, ON_FOOT=90)
        b = observation(0, STILL=50, WALKING=30, ON_FOOT=20, IN_VEHICLE=10)
        assert is_similar_type(a, b)

    def test_top_outside_other_top_three(self):
        a = observation(0, IN_VEHICLE=90)
        b = observation(0, STILL=50, WALKING=30, ON_FOOT=20, IN_VEHICLE=10)
        assert not is_similar_type(a, b)

    def test_ignores_time_delta(self):
        a = observation(0, STILL=90)
        b = observation(86_400, STILL=5)
        assert is_similar_type(a, b)
        assert seconds_delta(b, a) == 86_400


class TestFilterByActivity:
    def test_wildcard(self):
        on_foot = make_location(0, activities=[observation(0, ON_FOOT=80, STILL=10)])
        on_bike = make_location(10, activities=[observation(10, ON_BICYCLE=70)])
        still = make_location(20, activities=[observation(20, STILL=90, ON_FOOT=5)])

        result = filter_by_activity([on_foot, on_bike, still], "ON_*")

        assert list(result) == [on_foot, on_bike]

    def test_alternation(self):
        walking = make_location(0, activities=[observation(0, WALKING=80)])
        still = make_location(10, activities=[observation(10, STILL=80)])
        driving = make_location(20, activities=[observation(20, IN_VEHICLE=80)])

        result = filter_by_activity([walking, still, driving], "{WALKING,STILL}")

        assert list(result) == [walking, still]

    def test_any_observation_may_match(self):
        location = make_location(0, activities=[
            observation(0, STILL=90),
            observation(5, IN_VEHICLE=60, STILL=30),
        ])
        assert list(filter_by_activity([location], "IN_VEHICLE")) == [location]

    def test_tie_goes_to_first_stored(self):
        location = make_location(0, activities=[observation(0, STILL=50, ON_FOOT=50)])
        assert list(filter_by_activity([location], "ON_*")) == []
        assert list(filter_by_activity([location], "STILL")) == [location]

    def test_records_without_activities_are_dropped(self):
        assert list(filter_by_activity([make_location(0)], "*")) == []

    def test_matches_raw_labels(self):
        location = make_location(0, activities=[observation(0, IN_RAIL_VEHICLE=80)])
        assert list(filter_by_activity([location], "IN_*")) == [location]
        assert list(filter_by_activity([location], "UNKNOWN")) == []

    def test_result_is_sorted(self):
        late = make_location(50, activities=[observation(50, RUNNING=80)])
        early = make_location(10, activities=[observation(10, RUNNING=80)])
        result = filter_by_activity(Locations([late, early]), "RUNNING")
        assert list(result) == [early, late]
        assert isinstance(result, Locations)


class TestListActivities:
    def test_one_entry_per_label(self):
        location = make_location(0, activities=[observation(i, STILL=80) for i in range(100)])
        assert list_activities([location]) == {"STILL"}

    def test_collects_all_labels_before_merging(self):
        locations = [
            make_location(0, activities=[observation(0, STILL=80, TILTING=5)]),
            make_location(10, activities=[observation(10, IN_RAIL_VEHICLE=50, ON_FOOT=2)]),
            make_location(20),
        ]
        assert list_activities(locations) == {"STILL", "TILTING", "IN_RAIL_VEHICLE", "ON_FOOT"}

    def test_empty(self):
        assert list_activities([]) == set()
