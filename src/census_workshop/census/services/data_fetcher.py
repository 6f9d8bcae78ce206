"""
Service for fetching decennial Census and ACS data as tidy or wide tables.
"""
import logging
import re
import pandas as pd
import numpy as np
from typing import Dict, Optional, List, Tuple, Union
from pathlib import Path
from tqdm import tqdm

from ..core.census_client import CensusClient
from ..geography import (
    GEOGRAPHY_ALIASES,
    build_geography_clause,
    lookup_state,
    make_geoid,
    normalize_geography,
    resolve_county,
    state_abbreviation,
)
from ..geometry import attach_geometry
from ..moe import rescale_moe
from .reshape import sort_tidy
from ...utils.config import Config
from ...utils.validation import GeographyError, validate_dataframe

logger = logging.getLogger(__name__)

VariableSpec = Union[str, List[str], Dict[str, str], None]

# Annotation codes the API returns in place of a value
# (e.g. -666666666: estimate could not be computed; -555555555: controlled MOE)
SENTINEL_VALUES = [
    -111111111, -222222222, -333333333, -444444444,
    -555555555, -666666666, -888888888, -999999999,
]

GEO_PREDICATES = set(GEOGRAPHY_ALIASES.values())

DECENNIAL_YEARS = (2000, 2010, 2020)

ACS_SURVEYS = {
    # survey: (first vintage, last vintage or None)
    "acs1": (2005, None),
    "acs3": (2007, 2013),
    "acs5": (2009, None),
}

PSEUDO_VARIABLES = {"for", "in", "ucgid"}

# Estimate/MOE suffix after a digit, or after the P of a profile percent code
ACS_SUFFIX = re.compile(r"(\d|P)[EM]$")


class DataFetcher:
    """Service for fetching and shaping Census Bureau data."""

    def __init__(self, client: Optional[CensusClient] = None):
        """Initialize the data fetcher."""
        self.client = client or CensusClient()

    @staticmethod
    def _normalize_variables(variables: VariableSpec) -> Tuple[List[str], Dict[str, str]]:
        """
        Split a variable spec into request codes and a code -> display name map.

        A dict maps friendly names to codes; strings and lists use the codes
        themselves as names.
        """
        if variables is None:
            return [], {}
        if isinstance(variables, str):
            return [variables], {}
        if isinstance(variables, dict):
            codes = list(variables.values())
            return codes, {code: name for name, code in variables.items()}
        return list(variables), {}

    @staticmethod
    def _to_numeric(series: pd.Series) -> pd.Series:
        values = pd.to_numeric(series, errors="coerce")
        return values.where(~values.isin(SENTINEL_VALUES), np.nan)

    def _resolve_geography(self, geography: str, state, county, year: int,
                           dataset: str) -> Tuple[List[Optional[str]], Optional[List[str]]]:
        """Resolve state and county filters to FIPS codes."""
        normalize_geography(geography)

        if state is None:
            states = [None]
        elif isinstance(state, (str, int)):
            states = [lookup_state(state)]
        else:
            states = [lookup_state(s) for s in state]

        counties = None
        if county is not None:
            if states == [None] or len(states) > 1:
                raise GeographyError("A county filter requires exactly one state")
            county_values = [county] if isinstance(county, (str, int)) else list(county)
            counties = [resolve_county(self.client, states[0], c, year, dataset)
                        for c in county_values]

        return states, counties

    def _fetch(self, geography: str, year: int, dataset: str, codes: List[str],
               table: Optional[str], states: List[Optional[str]],
               counties: Optional[List[str]]) -> pd.DataFrame:
        """
        Run one request set per state and stack the results.

        Returns:
            Wide frame with GEOID, NAME and the raw (string) value columns
        """
        frames = []
        for state in tqdm(states, desc="Fetching states", disable=len(states) < 2):
            if state is not None:
                logger.debug(f"Requesting {geography} data for {state_abbreviation(state)}")
            clause = build_geography_clause(geography, state, counties)
            frames.append(self.client.get_data(year=year, dataset=dataset, variables=codes,
                                               geography=clause, table=table))

        raw = pd.concat(frames, ignore_index=True)
        geo_columns = [c for c in raw.columns if c in GEO_PREDICATES]
        raw.insert(0, "GEOID", make_geoid(raw, geo_columns))
        raw = raw.drop(columns=geo_columns + [c for c in ("GEO_ID",) if c in raw.columns])

        ordered = ["GEOID", "NAME"] + [c for c in raw.columns if c not in ("GEOID", "NAME")]
        raw = raw[ordered]
        validate_dataframe(raw, required_columns=["GEOID", "NAME"])
        return raw

    def _geometry(self, result: pd.DataFrame, geography: str, year: int,
                  states: List[Optional[str]], counties: Optional[List[str]],
                  keep_geo_vars: bool):
        state_list = [s for s in states if s is not None] or None
        return attach_geometry(result, geography, year, state=state_list,
                               county=counties, keep_geo_vars=keep_geo_vars)

    def get_decennial(self, geography: str, variables: VariableSpec = None,
                      table: Optional[str] = None, year: int = 2020,
                      sumfile: Optional[str] = None, state=None, county=None,
                      geometry: bool = False, output: str = "tidy",
                      keep_geo_vars: bool = False,
                      summary_var: Optional[str] = None) -> pd.DataFrame:
        """
        Get decennial Census counts.

        Args:
            geography: Geography level ("state", "county", "tract", ...)
            variables: Variable code(s), or a dict of display name -> code
            table: Table ID to fetch whole; exclusive with `variables`
            year: 2000, 2010 or 2020
            sumfile: Summary file ("pl", "dhc", "dp", "sf1", "sf2");
                defaults to "pl" for 2020 and "sf1" otherwise
            state: State(s) as abbreviations, names or FIPS codes
            county: County name(s) or FIPS code(s) within a single state
            geometry: Return a GeoDataFrame with cartographic boundaries
            output: "tidy" (GEOID, NAME, variable, value) or "wide"
            keep_geo_vars: Keep the boundary file's attribute columns
            summary_var: Variable joined onto every row as `summary_value`

        Returns:
            DataFrame (or GeoDataFrame when `geometry` is True)
        """
        if (variables is None) == (table is None):
            raise ValueError("Specify exactly one of `variables` or `table`")
        if year not in DECENNIAL_YEARS:
            raise ValueError(f"Decennial Census data is available for {DECENNIAL_YEARS}, not {year}")
        if output not in ("tidy", "wide"):
            raise ValueError("output must be 'tidy' or 'wide'")

        sumfile = sumfile or ("pl" if year == 2020 else "sf1")
        logger.info(f"Getting data from the {year} decennial Census ({sumfile})")

        codes, names = self._normalize_variables(variables)
        request = codes + ([summary_var] if summary_var and summary_var not in codes else [])

        states, counties = self._resolve_geography(geography, state, county, year, sumfile)

        if table:
            raw = self._fetch(geography, year, sumfile, [], table, states, counties)
            value_cols = [c for c in raw.columns
                          if c not in ("GEOID", "NAME") and not c.endswith("NA")]
            if summary_var and summary_var not in raw.columns:
                summary = self._fetch(geography, year, sumfile, [summary_var], None, states, counties)
                raw = raw.merge(summary[["GEOID", summary_var]], on="GEOID", how="left")
        else:
            raw = self._fetch(geography, year, sumfile, request, None, states, counties)
            value_cols = list(codes)

        for col in value_cols + ([summary_var] if summary_var else []):
            raw[col] = self._to_numeric(raw[col])

        if output == "wide":
            result = raw[["GEOID", "NAME"] + value_cols].rename(columns=names)
            if summary_var:
                result["summary_value"] = raw[summary_var].values
        else:
            result = raw.melt(id_vars=["GEOID", "NAME"], value_vars=value_cols,
                              var_name="variable", value_name="value")
            result = sort_tidy(result, order=value_cols)
            result["variable"] = result["variable"].replace(names)
            if summary_var:
                result = result.merge(
                    raw[["GEOID", summary_var]].rename(columns={summary_var: "summary_value"}),
                    on="GEOID", how="left",
                )

        if geometry:
            result = self._geometry(result, geography, year, states, counties, keep_geo_vars)

        return result

    @staticmethod
    def _acs_base_code(code: str) -> str:
        """Strip the E/M suffix from an ACS variable code."""
        if ACS_SUFFIX.search(code):
            return code[:-1]
        return code

    @staticmethod
    def _acs_dataset(survey: str, codes: List[str], table: Optional[str]) -> str:
        """Pick the detailed, subject or profile endpoint for the request."""
        prefixes = {(table or code).upper()[:2] for code in (codes or [table])}
        endpoints = set()
        for prefix in prefixes:
            if prefix.startswith("S"):
                endpoints.add("subject")
            elif prefix == "DP":
                endpoints.add("profile")
            elif prefix == "CP":
                endpoints.add("cprofile")
            else:
                endpoints.add("")
        if len(endpoints) > 1:
            raise ValueError("Detailed, subject and profile variables must be requested separately")
        endpoint = endpoints.pop()
        return f"{survey}/{endpoint}" if endpoint else survey

    def get_acs(self, geography: str, variables: VariableSpec = None,
                table: Optional[str] = None, year: Optional[int] = None,
                survey: str = "acs5", state=None, county=None,
                geometry: bool = False, output: str = "tidy",
                moe_level: int = 90, keep_geo_vars: bool = False,
                summary_var: Optional[str] = None) -> pd.DataFrame:
        """
        Get American Community Survey estimates and margins of error.

        Args:
            geography: Geography level ("state", "county", "tract", ...)
            variables: Variable code(s), with or without the E suffix, or a dict
                of display name -> code
            table: Table ID to fetch whole; exclusive with `variables`
            year: Endyear of the estimates; defaults to census.default_acs_year
            survey: "acs1", "acs3" or "acs5"
            state: State(s) as abbreviations, names or FIPS codes
            county: County name(s) or FIPS code(s) within a single state
            geometry: Return a GeoDataFrame with cartographic boundaries
            output: "tidy" (GEOID, NAME, variable, estimate, moe) or "wide"
            moe_level: Confidence level of the returned MOEs (90, 95 or 99)
            keep_geo_vars: Keep the boundary file's attribute columns
            summary_var: Variable joined onto every row as `summary_est`/`summary_moe`

        Returns:
            DataFrame (or GeoDataFrame when `geometry` is True)
        """
        if (variables is None) == (table is None):
            raise ValueError("Specify exactly one of `variables` or `table`")
        if output not in ("tidy", "wide"):
            raise ValueError("output must be 'tidy' or 'wide'")
        if survey not in ACS_SURVEYS:
            raise ValueError(f"survey must be one of {sorted(ACS_SURVEYS)}")
        # fail on a bad level before any request is made
        rescale_moe(0, moe_level)

        year = year or Config().get('census.default_acs_year', 2022)
        first, last = ACS_SURVEYS[survey]
        if year < first or (last is not None and year > last):
            raise ValueError(f"{survey} data is not available for {year}")
        if survey == "acs1" and year == 2020:
            raise ValueError("The 2020 1-year ACS was not released; use the experimental "
                             "estimates or a 5-year survey")
        if survey == "acs1":
            logger.warning("The 1-year ACS provides data for geographies with populations "
                           "of 65,000 and greater.")

        period = f"{year - 4}-{year}" if survey == "acs5" else str(year)
        logger.info(f"Getting data from the {period} {survey} ACS")

        codes, names = self._normalize_variables(variables)
        base_codes = [self._acs_base_code(c) for c in codes]
        names = {self._acs_base_code(code): name for code, name in names.items()}
        summary_base = self._acs_base_code(summary_var) if summary_var else None

        dataset = self._acs_dataset(survey, base_codes, table)
        states, counties = self._resolve_geography(geography, state, county, year, survey)

        summary_dataset = self._acs_dataset(survey, [summary_base], None) if summary_base else None

        if table:
            raw = self._fetch(geography, year, dataset, [], table, states, counties)
            base_codes = [c[:-1] for c in raw.columns
                          if ACS_SUFFIX.search(c) and c.endswith("E") and f"{c[:-1]}M" in raw.columns]
        else:
            request = [f"{c}{s}" for c in base_codes for s in ("E", "M")]
            if summary_base and summary_dataset == dataset:
                request += [f"{summary_base}E", f"{summary_base}M"]
            raw = self._fetch(geography, year, dataset, request, None, states, counties)

        if summary_base and f"{summary_base}E" not in raw.columns:
            # summary variable lives on another endpoint (e.g. B01003 for an S table)
            summary = self._fetch(geography, year, summary_dataset,
                                  [f"{summary_base}E", f"{summary_base}M"], None, states, counties)
            raw = raw.merge(summary[["GEOID", f"{summary_base}E", f"{summary_base}M"]],
                            on="GEOID", how="left")

        all_codes = base_codes + ([summary_base] if summary_base else [])
        for code in dict.fromkeys(all_codes):
            raw[f"{code}E"] = self._to_numeric(raw[f"{code}E"])
            raw[f"{code}M"] = pd.Series(rescale_moe(self._to_numeric(raw[f"{code}M"]), moe_level),
                                        index=raw.index)

        if output == "wide":
            columns = ["GEOID", "NAME"] + [f"{c}{s}" for c in base_codes for s in ("E", "M")]
            result = raw[columns].rename(columns={
                f"{code}{s}": f"{name}{s}" for code, name in names.items() for s in ("E", "M")
            })
            if summary_base:
                result["summary_est"] = raw[f"{summary_base}E"].values
                result["summary_moe"] = raw[f"{summary_base}M"].values
        else:
            ids = ["GEOID", "NAME"]
            est = raw.melt(id_vars=ids, value_vars=[f"{c}E" for c in base_codes],
                           var_name="variable", value_name="estimate")
            moe = raw.melt(id_vars=ids, value_vars=[f"{c}M" for c in base_codes],
                           var_name="variable", value_name="moe")
            est["variable"] = est["variable"].str[:-1]
            moe["variable"] = moe["variable"].str[:-1]
            result = est.merge(moe, on=ids + ["variable"], how="left")
            result = sort_tidy(result, order=base_codes)
            result["variable"] = result["variable"].replace(names)
            if summary_base:
                result = result.merge(
                    raw[["GEOID", f"{summary_base}E", f"{summary_base}M"]].rename(
                        columns={f"{summary_base}E": "summary_est", f"{summary_base}M": "summary_moe"}),
                    on="GEOID", how="left",
                )

        if geometry:
            result = self._geometry(result, geography, year, states, counties, keep_geo_vars)

        return result

    def _variables_cache_path(self, year: int, dataset: str) -> Path:
        cache_dir = Path(Config().get('census.cache_dir', '.census_cache')).expanduser()
        return cache_dir / f"variables_{year}_{dataset.replace('/', '_')}.csv"

    def load_variables(self, year: int, dataset: str, cache: bool = False) -> pd.DataFrame:
        """
        Load the variable dictionary of a dataset for browsing.

        Args:
            year: Data vintage
            dataset: Short dataset name ("acs5", "acs5/subject", "pl", "dhc", "sf1", ...)
            cache: Reuse, or store, a CSV copy under the configured cache directory

        Returns:
            DataFrame with name, label, concept, predicate_type and group columns
        """
        cache_path = self._variables_cache_path(year, dataset)
        if cache and cache_path.exists():
            logger.info(f"Loading cached variables from {cache_path}")
            return pd.read_csv(cache_path, dtype=str, keep_default_na=False)

        raw = self.client.get_variables(year, dataset)
        rows = [
            {
                "name": name,
                "label": meta.get("label", ""),
                "concept": meta.get("concept", ""),
                "predicate_type": meta.get("predicateType", ""),
                "group": meta.get("group", ""),
            }
            for name, meta in raw.items()
            if name not in PSEUDO_VARIABLES
        ]
        variables = pd.DataFrame(rows, columns=["name", "label", "concept", "predicate_type", "group"])
        variables = variables.sort_values("name").reset_index(drop=True)

        if cache:
            cache_path.parent.mkdir(parents=True, exist_ok=True)
            variables.to_csv(cache_path, index=False)
            logger.info(f"Cached {len(variables)} variables to {cache_path}")

        return variables


def get_decennial(geography: str, variables: VariableSpec = None, table: Optional[str] = None,
                  year: int = 2020, sumfile: Optional[str] = None, state=None, county=None,
                  geometry: bool = False, output: str = "tidy", keep_geo_vars: bool = False,
                  summary_var: Optional[str] = None,
                  client: Optional[CensusClient] = None) -> pd.DataFrame:
    """Get decennial Census counts; see DataFetcher.get_decennial."""
    return DataFetcher(client).get_decennial(
        geography, variables=variables, table=table, year=year, sumfile=sumfile,
        state=state, county=county, geometry=geometry, output=output,
        keep_geo_vars=keep_geo_vars, summary_var=summary_var,
    )


def get_acs(geography: str, variables: VariableSpec = None, table: Optional[str] = None,
            year: Optional[int] = None, survey: str = "acs5", state=None, county=None,
            geometry: bool = False, output: str = "tidy", moe_level: int = 90,
            keep_geo_vars: bool = False, summary_var: Optional[str] = None,
            client: Optional[CensusClient] = None) -> pd.DataFrame:
    """Get ACS estimates and margins of error; see DataFetcher.get_acs."""
    return DataFetcher(client).get_acs(
        geography, variables=variables, table=table, year=year, survey=survey,
        state=state, county=county, geometry=geometry, output=output,
        moe_level=moe_level, keep_geo_vars=keep_geo_vars, summary_var=summary_var,
    )


def load_variables(year: int, dataset: str, cache: bool = False,
                   client: Optional[CensusClient] = None) -> pd.DataFrame:
    """Load a dataset's variable dictionary; see DataFetcher.load_variables."""
    return DataFetcher(client).load_variables(year, dataset, cache=cache)
