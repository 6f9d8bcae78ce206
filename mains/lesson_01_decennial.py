#!/usr/bin/env python
"""
Lesson 1: decennial Census counts with get_decennial().

Walks through the 2020 redistricting file (PL 94-171): total population by
state, a county-level query with a summary variable, and a wide table.

Usage:
    python lesson_01_decennial.py
"""
import logging
from pathlib import Path

from census_workshop import get_decennial
from census_workshop.census import add_percent
from census_workshop.utils.visualization import Visualization

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s'
)
logger = logging.getLogger(__name__)

DATA_DIR = Path('data')


def main():
    DATA_DIR.mkdir(parents=True, exist_ok=True)

    # Total population of every state in 2020
    total_population = get_decennial(geography="state", variables="P1_001N", year=2020)
    print(total_population.head())
    total_population.to_csv(DATA_DIR / 'state_population_2020.csv', index=False)

    # Group quarters population by county, with total population as the denominator
    group_quarters = get_decennial(
        geography="county",
        variables={"group_quarters": "P5_001N"},
        state="TX",
        year=2020,
        summary_var="P1_001N",
    )
    group_quarters = add_percent(group_quarters, "value", "summary_value")
    print(group_quarters.sort_values("percent", ascending=False).head(10))

    # The same query in wide form: one column per variable
    race_wide = get_decennial(
        geography="county",
        variables={"white": "P1_003N", "black": "P1_004N", "asian": "P1_006N"},
        state="Oregon",
        output="wide",
    )
    print(race_wide.head())

    viz = Visualization(Path('visualizations'))
    top_states = total_population.sort_values("value", ascending=False).head(15)
    viz.comparison_barplot(top_states, x="NAME", y="value",
                           title="2020 Census population, 15 largest states")


if __name__ == "__main__":
    main()
