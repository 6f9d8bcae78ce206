#!/usr/bin/env python
"""
Lesson 3: ACS estimates and margins of error with get_acs().

Covers the 5-year and 1-year surveys, whole tables, MOE confidence levels
and the MOE helpers for derived estimates.

Usage:
    python lesson_03_acs.py
"""
import logging
from pathlib import Path

from census_workshop import get_acs
from census_workshop.census import moe_prop, moe_sum
from census_workshop.utils.visualization import Visualization

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    # Median household income by county, 2018-2022 5-year ACS
    income = get_acs(
        geography="county",
        variables={"medinc": "B19013_001"},
        state="Vermont",
        year=2022,
    )
    print(income.sort_values("estimate", ascending=False))

    viz = Visualization(Path('visualizations'))
    viz.estimate_dotplot(income, title="Median household income in Vermont counties")

    # The same estimates at a 99% confidence level
    income_99 = get_acs(geography="county", variables="B19013_001", state="VT", moe_level=99)
    print(income_99[["NAME", "estimate", "moe"]].head())

    # A whole table in wide form
    age_table = get_acs(geography="state", table="B01001", year=2022, output="wide")
    print(age_table.iloc[:5, :6])

    # Population aged 65+: combine the age bands and their MOEs
    elderly_vars = {f"b{i}": f"B01001_{i:03d}" for i in list(range(20, 26)) + list(range(44, 50))}
    elderly = get_acs(geography="county", variables=elderly_vars, state="VT",
                      summary_var="B01001_001")
    totals = (elderly.groupby(["GEOID", "NAME"])
                     .agg(estimate=("estimate", "sum"),
                          moe=("moe", moe_sum),
                          summary_est=("summary_est", "first"),
                          summary_moe=("summary_moe", "first"))
                     .reset_index())
    totals["share_65_plus"] = totals["estimate"] / totals["summary_est"]
    totals["share_moe"] = moe_prop(totals["estimate"], totals["summary_est"],
                                   totals["moe"], totals["summary_moe"])
    print(totals.sort_values("share_65_plus", ascending=False))


if __name__ == "__main__":
    main()
