import numpy as np
import pandas as pd
import pytest

from climsec.disasters import aggregate_disasters, normalize_by_duration
from climsec.prep import prepare_disaster_data


def _event(**kw):
    base = {"entity_code": "AAA", "start_year": 2000, "end_year": 2000, "type": "Flood",
            "subtype": "Flash flood", "group": "Natural", "deaths": 0.0, "affected": 0.0,
            "damage_adjusted": 0.0}
    base.update(kw)
    return base


@pytest.mark.parametrize("duration,value", [(1, 7.0), (3, 1000.0), (7, 0.1)])
def test_duration_round_trip(duration, value):
    events = pd.DataFrame([_event(end_year=2000 + duration - 1, deaths=value)])
    norm = normalize_by_duration(events)
    per_year = norm.loc[0, "deaths"]
    assert sum(per_year for _ in range(duration)) == pytest.approx(value)


def test_one_row_per_entity_start_year(disasters):
    summary = aggregate_disasters(disasters)
    assert not summary.duplicated(["entity_code", "start_year"]).any()
    assert summary["disaster_count"].sum() == len(disasters)


def test_summary_sums_are_na_safe_and_duration_normalized():
    events = pd.DataFrame([
        _event(deaths=10.0, affected=np.nan),
        _event(end_year=2001, deaths=4.0, affected=np.nan, group="Technological"),
        _event(type="Storm", subtype="Tropical cyclone", group=None, deaths=np.nan),
    ])
    row = aggregate_disasters(events).iloc[0]
    assert row["disaster_count"] == 3
    assert row["deaths"] == pytest.approx(12.0)
    assert row["affected"] == 0
    assert row["natural_count"] == 1
    assert row["technological_count"] == 1


def test_type_strings_are_ordered_unique():
    events = pd.DataFrame([
        _event(type="Storm", subtype="Tropical cyclone"),
        _event(type="Flood", subtype="Flash flood"),
        _event(type="Storm", subtype="Tropical cyclone"),
    ])
    row = aggregate_disasters(events).iloc[0]
    assert row["type"] == "Storm; Flood"
    assert row["subtype"] == "Tropical cyclone; Flash flood"


def test_events_keyed_on_start_year_only():
    events = pd.DataFrame([_event(start_year=2000, end_year=2003),
                           _event(start_year=2001, end_year=2001)])
    summary = aggregate_disasters(events)
    assert summary["start_year"].tolist() == [2000, 2001]
    assert summary["disaster_count"].tolist() == [1, 1]


def test_empty_events_give_empty_summary():
    summary = aggregate_disasters(pd.DataFrame(columns=list(_event())))
    assert summary.empty
    assert "disaster_count" in summary.columns


def test_identical_events_are_counted_separately():
    flood = _event(type="Flood", subtype="Riverine flood", deaths=np.nan,
                   affected=np.nan, damage_adjusted=np.nan)
    events = prepare_disaster_data(pd.DataFrame([flood, flood]))
    assert len(events) == 2
    assert aggregate_disasters(events)["disaster_count"].tolist() == [2]


def test_every_ingested_event_is_counted(disasters):
    repeated = pd.concat([disasters, disasters.iloc[:5]], ignore_index=True)
    summary = aggregate_disasters(prepare_disaster_data(repeated))
    assert summary["disaster_count"].sum() == len(repeated)
    assert summary["natural_count"].sum() == (repeated["group"] == "Natural").sum()
