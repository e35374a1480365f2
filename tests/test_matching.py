from sats_booker.matching import filter_candidates, matches_preferences, select_candidate
from sats_booker.models import CandidateClass, PreferenceSet


def candidate(name, time, location, bookable=True):
    return CandidateClass(name=name, time=time, location=location, bookable=bookable)


def test_wildcard_class_with_substring_time_and_location():
    prefs = PreferenceSet(classes=(), times=("18:00",), locations=("Oslo",))
    assert matches_preferences(candidate("Yoga", "18:00", "Oslo City"), prefs) is True


def test_class_mismatch():
    prefs = PreferenceSet(classes=("Yoga",))
    assert matches_preferences(candidate("Spinning", "18:00", "Storo"), prefs) is False


def test_empty_preferences_match_everything():
    assert matches_preferences(candidate("Spinning", "06:30", "Storo"), PreferenceSet()) is True


def test_matching_ignores_case():
    prefs = PreferenceSet(classes=("body pump",), locations=("colosseum",))
    assert matches_preferences(candidate("BODY PUMP 45", "17:00", "SATS Colosseum"), prefs)


def test_time_matches_inside_a_range():
    prefs = PreferenceSet(times=("18:00",))
    assert matches_preferences(candidate("Yoga", "18:00 - 19:00", "Storo"), prefs)
    assert not matches_preferences(candidate("Yoga", "17:00 - 18:00", "Storo"), PreferenceSet(times=("19:00",)))


def test_entries_within_a_dimension_are_alternatives():
    prefs = PreferenceSet(classes=("Yoga", "Pilates"))
    assert matches_preferences(candidate("Pilates", "10:00", "Storo"), prefs)


def test_all_dimensions_must_match():
    prefs = PreferenceSet(classes=("Yoga",), times=("18:00",), locations=("Storo",))
    assert not matches_preferences(candidate("Yoga", "18:00", "Colosseum"), prefs)


def test_blank_entries_behave_as_wildcard():
    prefs = PreferenceSet(classes=("  ",))
    assert matches_preferences(candidate("Yoga", "18:00", "Storo"), prefs)


def test_first_match_wins_in_scrape_order():
    candidates = [
        candidate("Spinning", "18:00", "Storo"),
        candidate("Yoga Flow", "18:00", "Storo"),
        candidate("Yoga", "18:00", "Storo"),
    ]
    chosen = select_candidate(candidates, PreferenceSet(classes=("Yoga",)))
    assert chosen is candidates[1]


def test_fully_booked_classes_are_skipped():
    candidates = [
        candidate("Yoga", "18:00", "Storo", bookable=False),
        candidate("Yoga", "18:00", "Ryen"),
    ]
    prefs = PreferenceSet(classes=("Yoga",))
    assert select_candidate(candidates, prefs) is candidates[1]
    assert filter_candidates(candidates, prefs) == [candidates[1]]


def test_no_match_returns_none():
    assert select_candidate([candidate("Spinning", "18:00", "Storo")], PreferenceSet(classes=("Yoga",))) is None
    assert select_candidate([], PreferenceSet()) is None
