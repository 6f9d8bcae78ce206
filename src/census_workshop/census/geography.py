"""
Geography levels, state FIPS codes and the `for`/`in` predicates of the Census Data API.
"""
import logging
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from ..utils.validation import GeographyError

logger = logging.getLogger(__name__)

# User-facing geography names mapped to the API's `for` predicate
GEOGRAPHY_ALIASES = {
    "us": "us",
    "region": "region",
    "division": "division",
    "state": "state",
    "county": "county",
    "county subdivision": "county subdivision",
    "tract": "tract",
    "block group": "block group",
    "block": "block",
    "place": "place",
    "congressional district": "congressional district",
    "zcta": "zip code tabulation area",
    "zip code tabulation area": "zip code tabulation area",
    "cbsa": "metropolitan statistical area/micropolitan statistical area",
    "metropolitan statistical area/micropolitan statistical area":
        "metropolitan statistical area/micropolitan statistical area",
}

# Levels nested inside a state (the state is optional)
STATE_NESTED = {"county", "county subdivision", "place", "congressional district"}

# Levels nested inside counties (the state is required)
COUNTY_NESTED = {"tract", "block group", "block"}

STATE_FIPS = {
    "AL": ("01", "Alabama"), "AK": ("02", "Alaska"), "AZ": ("04", "Arizona"),
    "AR": ("05", "Arkansas"), "CA": ("06", "California"), "CO": ("08", "Colorado"),
    "CT": ("09", "Connecticut"), "DE": ("10", "Delaware"), "DC": ("11", "District of Columbia"),
    "FL": ("12", "Florida"), "GA": ("13", "Georgia"), "HI": ("15", "Hawaii"),
    "ID": ("16", "Idaho"), "IL": ("17", "Illinois"), "IN": ("18", "Indiana"),
    "IA": ("19", "Iowa"), "KS": ("20", "Kansas"), "KY": ("21", "Kentucky"),
    "LA": ("22", "Louisiana"), "ME": ("23", "Maine"), "MD": ("24", "Maryland"),
    "MA": ("25", "Massachusetts"), "MI": ("26", "Michigan"), "MN": ("27", "Minnesota"),
    "MS": ("28", "Mississippi"), "MO": ("29", "Missouri"), "MT": ("30", "Montana"),
    "NE": ("31", "Nebraska"), "NV": ("32", "Nevada"), "NH": ("33", "New Hampshire"),
    "NJ": ("34", "New Jersey"), "NM": ("35", "New Mexico"), "NY": ("36", "New York"),
    "NC": ("37", "North Carolina"), "ND": ("38", "North Dakota"), "OH": ("39", "Ohio"),
    "OK": ("40", "Oklahoma"), "OR": ("41", "Oregon"), "PA": ("42", "Pennsylvania"),
    "RI": ("44", "Rhode Island"), "SC": ("45", "South Carolina"), "SD": ("46", "South Dakota"),
    "TN": ("47", "Tennessee"), "TX": ("48", "Texas"), "UT": ("49", "Utah"),
    "VT": ("50", "Vermont"), "VA": ("51", "Virginia"), "WA": ("53", "Washington"),
    "WV": ("54", "West Virginia"), "WI": ("55", "Wisconsin"), "WY": ("56", "Wyoming"),
    "PR": ("72", "Puerto Rico"),
}

_FIPS_CODES = {fips for fips, _ in STATE_FIPS.values()}
_STATE_NAMES = {name.lower(): fips for fips, name in STATE_FIPS.values()}


def normalize_geography(geography: str) -> str:
    """Return the API predicate name for a user-facing geography level."""
    key = " ".join(str(geography).lower().split())
    if key not in GEOGRAPHY_ALIASES:
        raise GeographyError(
            f"Unknown geography: {geography}. Valid geographies are: {sorted(GEOGRAPHY_ALIASES)}"
        )
    return GEOGRAPHY_ALIASES[key]


def lookup_state(value: Union[str, int]) -> str:
    """
    Resolve a state to its 2-digit FIPS code.

    Args:
        value: Postal abbreviation ("TX"), full name ("texas") or FIPS code (48, "48")

    Returns:
        Zero-padded 2-digit FIPS code
    """
    text = str(value).strip()
    if text.isdigit():
        fips = text.zfill(2)
        if fips in _FIPS_CODES:
            return fips
    elif text.upper() in STATE_FIPS:
        return STATE_FIPS[text.upper()][0]
    elif text.lower() in _STATE_NAMES:
        return _STATE_NAMES[text.lower()]
    raise GeographyError(f"'{value}' is not a valid FIPS code or state name/abbreviation")


def state_abbreviation(fips: str) -> str:
    """Return the postal abbreviation for a 2-digit state FIPS code."""
    for abbr, (code, _) in STATE_FIPS.items():
        if code == fips:
            return abbr
    raise GeographyError(f"Unknown state FIPS code: {fips}")


def _as_list(value) -> List:
    if value is None:
        return []
    if isinstance(value, (str, int)):
        return [value]
    return list(value)


def normalize_county(value: Union[str, int]) -> str:
    """Zero-pad a county FIPS code, or return the original text if it is a name."""
    text = str(value).strip()
    if text.isdigit():
        if len(text) == 5:
            # full state+county GEOID
            return text[2:]
        return text.zfill(3)
    return text


def resolve_county(client, state_fips: str, county: Union[str, int], year: int, dataset: str) -> str:
    """
    Resolve a county name (e.g. "Travis" or "Travis County") to its 3-digit FIPS code.

    FIPS codes are returned unchanged. Names are looked up against the
    county list the API publishes for the state.
    """
    code = normalize_county(county)
    if code.isdigit():
        return code

    counties = client.get_data(
        year=year,
        dataset=dataset,
        variables=[],
        geography={"for": "county:*", "in": f"state:{state_fips}"},
    )
    target = code.lower()
    for _, row in counties.iterrows():
        county_name = str(row["NAME"]).split(",")[0].strip().lower()
        short_name = county_name
        for suffix in (" county", " parish", " borough", " census area", " municipality", " city and borough"):
            if short_name.endswith(suffix):
                short_name = short_name[: -len(suffix)]
                break
        if target in (county_name, short_name):
            logger.debug(f"Resolved county '{county}' to {row['county']}")
            return str(row["county"])
    raise GeographyError(f"County '{county}' not found in state {state_fips}")


def build_geography_clause(geography: str,
                           state: Optional[str] = None,
                           county: Optional[Sequence[str]] = None) -> Dict[str, str]:
    """
    Build the `for`/`in` request parameters for a geography level.

    Args:
        geography: User-facing geography level (e.g. "county", "tract")
        state: 2-digit state FIPS code, already resolved
        county: 3-digit county FIPS codes, already resolved

    Returns:
        Dictionary with a `for` key and, when the level is nested, an `in` key
    """
    level = normalize_geography(geography)
    counties = _as_list(county)

    if counties and state is None:
        raise GeographyError("A county filter requires a state")

    if level in ("us", "region", "division", "zip code tabulation area",
                 "metropolitan statistical area/micropolitan statistical area"):
        if state is not None:
            logger.warning(f"State filter ignored for geography '{geography}'")
        return {"for": f"{level}:*"}

    if level == "state":
        return {"for": f"state:{state or '*'}"}

    if level in STATE_NESTED:
        if level == "county" and counties:
            return {"for": f"county:{','.join(counties)}", "in": f"state:{state}"}
        if counties and level != "county subdivision":
            raise GeographyError(f"A county filter is not supported for geography '{geography}'")
        clause = {"for": f"{level}:*"}
        if state is not None:
            clause["in"] = f"state:{state}"
        if counties:
            clause["in"] += f" county:{','.join(counties)}"
        return clause

    if level in COUNTY_NESTED:
        if state is None:
            raise GeographyError(f"Geography '{geography}' requires a state")
        if level == "block" and not counties:
            raise GeographyError("Block data requires both a state and a county")
        county_part = ",".join(counties) if counties else "*"
        return {"for": f"{level}:*", "in": f"state:{state} county:{county_part}"}

    raise GeographyError(f"Unsupported geography: {geography}")


def make_geoid(df: pd.DataFrame, geo_columns: List[str]) -> pd.Series:
    """
    Build GEOIDs by concatenating the geography columns returned by the API.

    The API appends geography columns in hierarchy order (state, county,
    tract, ...), so concatenating them left to right gives the GEOID.
    """
    if not geo_columns:
        raise GeographyError("Response contains no geography columns")
    if geo_columns == ["us"]:
        return pd.Series("1", index=df.index)
    geoid = df[geo_columns[0]].astype(str)
    for col in geo_columns[1:]:
        geoid = geoid + df[col].astype(str)
    return geoid
