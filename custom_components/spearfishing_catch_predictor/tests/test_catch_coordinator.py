from datetime import date, datetime, timedelta, timezone

import pytest

from custom_components.spearfishing_catch_predictor import coordinator as coord_mod
from custom_components.spearfishing_catch_predictor.coordinator import CatchPredictorCoordinator
from custom_components.spearfishing_catch_predictor.models import Catch, Conditions, HistoricalDive

NOW = datetime(2024, 7, 14, 9, 30, tzinfo=timezone.utc)


def make_forecast(days=7):
    hours = days * 24
    start = datetime(2024, 7, 14)
    times = [(start + timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M") for i in range(hours)]
    return {
        "weather": {
            "hourly": {
                "time": times,
                "temperature_2m": [18.0 + (i % 24) / 4 for i in range(hours)],
                "relative_humidity_2m": [65] * hours,
                "precipitation": [0.0] * hours,
                "weather_code": [2] * hours,
                "wind_speed_10m": [12.0] * hours,
                "wind_direction_10m": [45] * hours,
            }
        },
        "marine": {
            "hourly": {
                "time": times,
                "wave_height": [0.4] * hours,
                "wave_direction": [90] * hours,
                "wave_period": [6.0] * hours,
            }
        },
    }


class DummyHass:
    def __init__(self):
        self.data = {}
        class Config:
            def path(self, *parts):
                return "/".join(parts)
        self.config = Config()


class StubDiveLog:
    def __init__(self, dives):
        self.dives = list(dives)

    def get_history(self, location_id=None):
        return list(self.dives)


class MockFetcher:
    def __init__(self, payload):
        self.payload = payload
        self.calls = 0

    async def fetch_forecast(self, days=7):
        self.calls += 1
        return self.payload


def make_coordinator(hass, dives=(), fetcher=None, **kwargs):
    return CatchPredictorCoordinator(
        hass,
        entry_id="t1",
        fetcher=fetcher or MockFetcher(make_forecast()),
        dive_log=StubDiveLog(dives),
        lat=39.5,
        lon=2.6,
        update_interval=600,
        **kwargs,
    )


def _dive(dive_id, conditions, species=("Dentex",), location_id="spot-a"):
    return HistoricalDive(
        dive_id=dive_id,
        date=date(2024, 6, 1),
        location_id=location_id,
        conditions=conditions,
        catches=tuple(Catch(s) for s in species),
    )


@pytest.mark.asyncio
async def test_report_shape():
    c = make_coordinator(DummyHass(), min_score=0.0)
    report = c.build_report(make_forecast(), NOW)

    assert report["dives_analysed"] == 0
    assert report["matches"] == []
    assert report["best_score"] is None
    cond = report["conditions"]
    assert cond["temperature"] == pytest.approx(18.0 + 9 / 4)
    assert cond["wind_direction"] == 45.0
    assert cond["wave_height"] == 0.4
    assert 20.0 <= cond["tide_coefficient"] <= 120.0
    assert cond["tide_type"] in ("high", "low", "rising", "falling")
    assert report["weather"]["description"] == "Partly cloudy"
    assert report["weather"]["wind_direction_label"] == "NE"
    assert len(report["solunar"]) == 4
    assert all(" - " in p["range"] for p in report["solunar"])
    assert report["moon"]["label"] in ("waxing_crescent", "first_quarter", "waxing_gibbous")
    assert [d["date"] for d in report["outlook"]] == [f"2024-07-{d}" for d in range(14, 21)]
    assert all(d["slot"] == "Morning" for d in report["outlook"])
    assert set(report["tides"]) == {"events", "coefficient", "state"}


@pytest.mark.asyncio
async def test_identical_past_dive_is_the_top_match():
    hass = DummyHass()
    first = make_coordinator(hass).build_report(make_forecast(), NOW)
    same = _dive("same", Conditions(**first["conditions"]))
    other = _dive("other", Conditions(wind_speed=45.0, wave_height=3.0, moon_phase=0.9))

    report = make_coordinator(hass, dives=[other, same], min_score=0.5).build_report(make_forecast(), NOW)
    assert report["dives_analysed"] == 2
    assert [m["dive_id"] for m in report["matches"]] == ["same"]
    assert report["best_score"] == 100
    assert report["matches"][0]["summary"] == "Near-identical conditions. You caught: Dentex"
    assert report["outlook"][0]["match_count"] >= 1


@pytest.mark.asyncio
async def test_location_and_catch_filters_apply():
    hass = DummyHass()
    first = make_coordinator(hass).build_report(make_forecast(), NOW)
    cond = Conditions(**first["conditions"])
    dives = [
        _dive("here", cond),
        _dive("there", cond, location_id="spot-b"),
        _dive("nothing", cond, species=()),
    ]
    report = make_coordinator(
        hass, dives=dives, location_id="spot-a", only_with_catches=True, min_score=0.5
    ).build_report(make_forecast(), NOW)
    assert [m["dive_id"] for m in report["matches"]] == ["here"]


@pytest.mark.asyncio
async def test_missing_forecast_hour_matches_on_moon_and_tide():
    report = make_coordinator(DummyHass()).build_report({}, NOW)
    assert set(report["conditions"]) == {"moon_phase", "tide_coefficient", "tide_type"}
    assert report["weather"] == {}
    assert report["outlook"] == []


@pytest.mark.asyncio
async def test_update_uses_shared_fetch_cache(monkeypatch):
    monkeypatch.setattr(coord_mod.dt_util, "now", lambda: NOW)
    hass = DummyHass()
    fetcher = MockFetcher(make_forecast())

    data = await make_coordinator(hass, fetcher=fetcher)._async_update_data()
    await make_coordinator(hass, fetcher=fetcher)._async_update_data()

    assert fetcher.calls == 1
    assert data["updated"] == NOW.isoformat()
    assert len(hass.data["spearfishing_catch_predictor"]["fetch_cache"]) == 1


@pytest.mark.asyncio
async def test_fetch_errors_propagate(monkeypatch):
    monkeypatch.setattr(coord_mod.dt_util, "now", lambda: NOW)

    class FailingFetcher:
        async def fetch_forecast(self, days=7):
            raise RuntimeError("Open-Meteo forecast REST fetch failed")

    with pytest.raises(RuntimeError):
        await make_coordinator(DummyHass(), fetcher=FailingFetcher())._async_update_data()


@pytest.mark.asyncio
async def test_unknown_time_slot_rejected():
    with pytest.raises(ValueError):
        make_coordinator(DummyHass(), time_slot="brunch")


@pytest.mark.asyncio
async def test_forecast_hour_follows_the_spot_timezone():
    forecast = make_forecast()
    forecast["weather"]["timezone"] = "Pacific/Honolulu"
    report = make_coordinator(DummyHass()).build_report(forecast, NOW)

    # 09:30 UTC is 23:30 of the previous day in Honolulu
    assert report["updated"] == "2024-07-13T23:30:00-10:00"
    assert report["conditions"]["temperature"] == pytest.approx(18.0 + 23 / 4)
    assert report["outlook"][0]["date"] == "2024-07-13"
