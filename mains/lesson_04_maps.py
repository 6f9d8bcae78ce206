#!/usr/bin/env python
"""
Lesson 4: mapping Census data with geometry=True.

Usage:
    python lesson_04_maps.py
"""
import logging
from pathlib import Path

from census_workshop import get_acs, get_decennial
from census_workshop.census import add_percent
from census_workshop.utils.visualization import Visualization

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    viz = Visualization(Path('visualizations'))

    # Median household income by tract in one county
    travis_income = get_acs(
        geography="tract",
        variables="B19013_001",
        state="TX",
        county="Travis",
        year=2022,
        geometry=True,
    )
    viz.choropleth(travis_income, column="estimate",
                   title="Median household income, Travis County TX tracts")

    # Percent Hispanic by county from the 2020 redistricting file
    hispanic = get_decennial(
        geography="county",
        variables="P2_002N",
        state="NM",
        year=2020,
        summary_var="P2_001N",
        geometry=True,
    )
    hispanic = add_percent(hispanic, "value", "summary_value")
    viz.choropleth(hispanic, column="percent",
                   title="Percent Hispanic or Latino, New Mexico counties")


if __name__ == "__main__":
    main()
