import numpy as np
import pandas as pd
import pytest

ENTITIES = ["AAA", "BBB", "CCC"]
YEARS = range(2005, 2014)
FLAGS = ["SecuritizedClimate", "ClimateOnly", "NonClimate"]


@pytest.fixture
def speeches():
    """Three entities, 2005-2013, one speech per topic flag per year plus extra
    securitized speeches in some years so the outcome varies."""
    rows = []
    for e_idx, entity in enumerate(ENTITIES):
        for year in YEARS:
            flags = list(FLAGS)
            if (year + e_idx) % 2 == 0:
                flags.append("SecuritizedClimate")
            for n, flag in enumerate(flags):
                rows.append({"doc_id": f"{entity}_{year}_{n}", "entity_code": entity,
                             "year": year, "topic_flag": flag})
    return pd.DataFrame(rows)


@pytest.fixture
def disasters():
    """One flood per entity-year, plus technological and unclassified events
    in some years; every speech year has a disaster summary."""
    rows = []
    for e_idx, entity in enumerate(ENTITIES):
        for year in YEARS:
            rows.append({"entity_code": entity, "start_year": year, "end_year": year,
                         "type": "Flood", "subtype": "Riverine flood", "group": "Natural",
                         "deaths": 10.0, "affected": 100.0, "damage_adjusted": 1000.0})
            if (year + e_idx) % 3 == 0:
                rows.append({"entity_code": entity, "start_year": year, "end_year": year + 1,
                             "type": "Industrial accident", "subtype": "Explosion",
                             "group": "Technological", "deaths": 4.0, "affected": np.nan,
                             "damage_adjusted": 50.0})
            if (year + e_idx) % 4 == 0:
                rows.append({"entity_code": entity, "start_year": year, "end_year": year,
                             "type": "Storm", "subtype": "Tropical cyclone", "group": None,
                             "deaths": np.nan, "affected": 20.0, "damage_adjusted": np.nan})
    return pd.DataFrame(rows)


@pytest.fixture
def controls(speeches):
    rng = np.random.default_rng(7)
    return pd.DataFrame({
        "doc_id": speeches["doc_id"],
        "gdp_per_capita": rng.normal(10_000, 2_000, len(speeches)),
        "regime_type": np.where(np.arange(len(speeches)) % 5 == 0, "autocracy", "democracy"),
    })
