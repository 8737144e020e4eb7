import pytest

from custom_components.spearfishing_catch_predictor.models import Conditions
from custom_components.spearfishing_catch_predictor.similarity import (
    FACTOR_WEIGHTS,
    SimilarityConfig,
    compare_dives,
    similarity,
)

CURRENT = Conditions(
    temperature=20.0,
    wind_speed=10.0,
    wind_direction=350.0,
    wave_height=0.5,
    tide_coefficient=70.0,
    moon_phase=0.02,
)

NEAR = Conditions(
    temperature=21.0,
    wind_speed=12.0,
    wind_direction=10.0,
    wave_height=0.6,
    tide_coefficient=75.0,
    moon_phase=0.98,
)

FAR = Conditions(
    temperature=35.0,
    wind_speed=45.0,
    wind_direction=170.0,
    wave_height=3.0,
    tide_coefficient=115.0,
    moon_phase=0.5,
)


def test_default_weights_sum_to_one():
    assert sum(FACTOR_WEIGHTS.values()) == pytest.approx(1.0)


def test_identical_conditions_score_one():
    result = similarity(CURRENT, CURRENT)
    assert result.score == pytest.approx(1.0)
    assert "same lunar phase" in result.reasons
    assert set(result.contributing) == set(CURRENT.known_fields())


def test_near_conditions_score_high():
    # wind 0.933, direction 0.778 (across north), swell 0.95, tide 0.875, moon 0.84 (across new moon), temp 0.9
    result = similarity(CURRENT, NEAR)
    assert result.score == pytest.approx(0.8728, abs=1e-3)
    assert result.score > 0.8
    assert "similar wind direction" in result.reasons
    assert "similar lunar phase" in result.reasons


def test_dissimilar_conditions_score_low():
    result = similarity(CURRENT, FAR)
    assert result.score < 0.3
    assert result.reasons == ()
    assert "different swell" in [f.detail for f in result.factors]


def test_score_is_symmetric():
    assert similarity(CURRENT, NEAR).score == pytest.approx(similarity(NEAR, CURRENT).score)


def test_missing_fields_are_renormalised_not_penalised():
    current = Conditions(moon_phase=0.5)
    past = Conditions(moon_phase=0.5, wind_speed=40.0, wave_height=3.0)
    result = similarity(current, past)
    assert result.score == pytest.approx(1.0)
    assert result.compared == ("moon_phase",)


def test_no_shared_fields_scores_zero_without_factors():
    result = similarity(Conditions(wind_speed=10.0), Conditions(moon_phase=0.1))
    assert result.score == 0.0
    assert result.factors == ()


def test_dropping_a_mismatched_field_never_lowers_the_score():
    past = NEAR.with_values(wave_height=4.0)
    with_wave = similarity(CURRENT, past).score
    without_wave = similarity(CURRENT.with_values(wave_height=None), past).score
    assert without_wave >= with_wave


def test_tide_type_exact_match_is_case_insensitive():
    same = similarity(Conditions(tide_type="Rising"), Conditions(tide_type="rising"))
    other = similarity(Conditions(tide_type="rising"), Conditions(tide_type="falling"))
    assert same.score == 1.0
    assert same.reasons == ("same tide state",)
    assert other.score == 0.0


def test_compass_label_direction_is_compared_in_degrees():
    result = similarity(Conditions(wind_direction=45.0), Conditions(wind_direction="NE"))
    assert result.score == pytest.approx(1.0)


def test_zero_weight_removes_a_factor():
    config = SimilarityConfig.from_options(weights={"moon_phase": 0})
    a = Conditions(moon_phase=0.0, wind_speed=10.0)
    b = Conditions(moon_phase=0.5, wind_speed=10.0)
    assert similarity(a, b).score < 1.0
    assert similarity(a, b, config).score == pytest.approx(1.0)


def test_custom_max_difference_changes_decay():
    config = SimilarityConfig.from_options(max_differences={"wind_speed": 60})
    a = Conditions(wind_speed=10.0)
    b = Conditions(wind_speed=25.0)
    assert similarity(a, b).score == pytest.approx(0.5)
    assert similarity(a, b, config).score == pytest.approx(0.75)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"weights": {"visibility": 0.2}},
        {"weights": {"wind_speed": -1}},
        {"weights": {"wind_speed": "lots"}},
        {"weights": {name: 0 for name in FACTOR_WEIGHTS}},
        {"max_differences": {"wave_height": 0}},
    ],
)
def test_invalid_config_raises(kwargs):
    with pytest.raises(ValueError):
        SimilarityConfig.from_options(**kwargs)


def test_compare_dives_shape():
    out = compare_dives(CURRENT, NEAR)
    assert out["score_100"] == 87
    assert set(out["breakdown"]) == {
        "temperature",
        "wind_speed",
        "wind_direction",
        "wave_height",
        "tide_coefficient",
        "moon_phase",
    }
    assert out["breakdown"]["wave_height"]["closeness"] == pytest.approx(0.95)


SCENARIO_NOW = Conditions(wind_speed=10.0, wind_direction=45.0, wave_height=0.5, moon_phase=0.5)


def test_near_identical_logged_dive_scores_above_080():
    past = Conditions(wind_speed=12.0, wind_direction=50.0, wave_height=0.6, moon_phase=0.48)
    result = similarity(SCENARIO_NOW, past)
    assert result.score > 0.8
    assert result.score == pytest.approx(0.9345, abs=1e-3)


def test_clearly_dissimilar_logged_dive_scores_below_030():
    past = Conditions(wind_speed=40.0, wind_direction=270.0, wave_height=3.0, moon_phase=0.0)
    assert similarity(SCENARIO_NOW, past).score < 0.3
