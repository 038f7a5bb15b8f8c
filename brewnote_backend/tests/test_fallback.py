import pytest

from brewnote_backend.app.brewing.fallback import default_suggestion, method_bounds, suggest
from brewnote_backend.app.brewing.methods import get_method, method_keys

METHODS = method_keys()


def _brew(method, taste, **fields):
    return {"id": "prev", "beanId": "b", "method": method, "taste": list(taste), **fields}


@pytest.mark.parametrize("method", METHODS)
def test_empty_history_returns_method_default(method):
    s = suggest([], method)
    d = default_suggestion(method)
    assert s == d
    assert s.source == "default"
    assert (s.pressure_bar is not None) == (method == "espresso")

def test_espresso_default_values():
    s = suggest([], "espresso")
    assert (s.grind_size, s.ratio, s.brew_time, s.water_temp_c, s.pressure_bar) == ("fine", "2:1", 28, 93, 9)

def test_espresso_too_bitter_scenario():
    s = suggest([{"method": "espresso", "taste": ["too_bitter"], "brewTimeSec": 25}], "espresso")
    assert s.grind_size == "slightly coarser"
    assert s.brew_time == 22
    assert s.ratio == "1.9:1"
    assert s.source == "fallback"

def test_espresso_too_sour_steps_grind_on_ladder():
    s = suggest([_brew("espresso", ["too_sour"], grindSize="medium-fine", brewTimeSec=26)], "espresso")
    assert s.grind_size == "fine"
    assert s.brew_time == 29
    assert s.ratio == "2.3:1"

def test_pourover_too_bitter_adjusts_time_temp_and_ratio():
    s = suggest([_brew("pourover", ["too_bitter"], grindSize="medium", brewTimeSec=200, waterTempC=96)], "pourover")
    assert s.grind_size == "medium-coarse"
    assert s.brew_time == 180
    assert s.water_temp_c == 94
    assert s.ratio == "16:1"
    assert s.pressure_bar is None

def test_mokapot_times_stay_in_minutes():
    s = suggest([_brew("mokapot", ["too_bitter"], brewTimeMin=4, waterTempC=90)], "mokapot")
    assert s.brew_time == pytest.approx(3.4)
    assert s.water_temp_c == 87

def test_balanced_keeps_previous_values():
    prev = _brew("espresso", ["balanced"], grindSize="fine", doseG=18, yieldG=40, brewTimeSec=27, waterTempC=92, pressureBar=9)
    s = suggest([prev], "espresso")
    assert (s.grind_size, s.brew_time, s.water_temp_c, s.ratio) == ("fine", 27, 92, "2.2:1")
    assert "balanced" in s.explanation.lower()

def test_other_tags_use_baseline_explanation():
    s = suggest([_brew("pourover", ["weak"], grindSize="medium", brewTimeSec=210)], "pourover")
    assert s.explanation == "Using previous parameters as baseline for next brew."
    assert s.brew_time == 210
    assert s.grind_size == "medium"

def test_first_tag_in_insertion_order_drives_rule():
    s = suggest([_brew("pourover", ["balanced", "too_bitter"], brewTimeSec=200)], "pourover")
    assert s.brew_time == 200

def test_only_most_recent_brew_counts():
    history = [
        _brew("pourover", ["too_sour"], brewTimeSec=200),
        _brew("pourover", ["too_bitter"], brewTimeSec=300),
    ]
    assert suggest(history, "pourover").brew_time == 220

def test_legacy_history_record_is_upgraded():
    s = suggest([{"id": "old", "coffeeType": "french_press", "brewTime": 300, "taste": "too_sour"}], "frenchpress")
    assert s.brew_time == 5.5
    assert s.water_temp_c == 97
    assert s.grind_size == "medium-fine"

def test_unknown_method_falls_back_to_pourover():
    assert suggest([], "latte") == default_suggestion("pourover")

def test_espresso_pressure_is_clamped():
    s = suggest([_brew("espresso", ["balanced"], brewTimeSec=28, pressureBar=15)], "espresso")
    assert s.pressure_bar == 12

def test_suggest_is_deterministic():
    history = [_brew("frenchpress", ["too_bitter"], grindSize="coarse", brewTimeMin=4.5, waterTempC=94)]
    assert suggest(history, "frenchpress") == suggest(history, "frenchpress")


def _in_bounds_time(method):
    lo, hi = method_bounds(method)["brewTime"]
    return (lo + hi) / 2

@pytest.mark.parametrize("method", METHODS)
def test_too_bitter_never_lengthens_and_respects_floor(method):
    spec = get_method(method)
    for prev_time in (method_bounds(method)["brewTime"][0], _in_bounds_time(method), method_bounds(method)["brewTime"][1]):
        s = suggest([_brew(method, ["too_bitter"], **{spec.time_field: prev_time})], method)
        assert s.brew_time <= prev_time
        assert s.brew_time >= method_bounds(method)["brewTime"][0]

@pytest.mark.parametrize("method", METHODS)
def test_too_sour_never_shortens_and_respects_ceiling(method):
    spec = get_method(method)
    for prev_time in (method_bounds(method)["brewTime"][0], _in_bounds_time(method), method_bounds(method)["brewTime"][1]):
        s = suggest([_brew(method, ["too_sour"], **{spec.time_field: prev_time})], method)
        assert s.brew_time >= prev_time
        assert s.brew_time <= method_bounds(method)["brewTime"][1]

@pytest.mark.parametrize("method, taste", [(m, t) for m in METHODS for t in ("too_bitter", "too_sour")])
def test_repeated_adjustment_never_leaves_bounds(method, taste):
    spec = get_method(method)
    bounds = method_bounds(method)
    s = suggest([], method)
    for _ in range(25):
        prev = _brew(method, [taste], grindSize=s.grind_size, waterTempC=s.water_temp_c, **{spec.time_field: s.brew_time})
        s = suggest([prev], method)
        assert bounds["brewTime"][0] <= s.brew_time <= bounds["brewTime"][1]
        assert bounds["waterTempC"][0] <= s.water_temp_c <= bounds["waterTempC"][1]
    assert s.grind_size == ("extra-coarse" if taste == "too_bitter" else "extra-fine")
