#!/usr/bin/env python
"""
Lesson 2: finding variable codes with load_variables().

Usage:
    python lesson_02_variables.py
"""
import logging

from census_workshop import load_variables

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    # Variables of the 2022 5-year ACS detailed tables, cached for reuse
    acs_vars = load_variables(2022, "acs5", cache=True)
    print(f"{len(acs_vars)} ACS variables")

    income = acs_vars[acs_vars["concept"].str.contains("median household income", case=False)]
    print(income[["name", "label", "concept"]].head(10))

    # Subject tables live on their own endpoint
    subject_vars = load_variables(2022, "acs5/subject", cache=True)
    print(subject_vars[subject_vars["name"].str.startswith("S1701")].head())

    # The 2020 redistricting file
    pl_vars = load_variables(2020, "pl")
    print(pl_vars[pl_vars["group"] == "P1"].head(10))


if __name__ == "__main__":
    main()
