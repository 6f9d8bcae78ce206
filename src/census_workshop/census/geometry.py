"""
Cartographic boundary geometries from the Census Bureau's TIGER/Line service.
"""
import logging
from io import BytesIO
from typing import List, Optional

import geopandas as gpd
import pandas as pd
import requests

from .geography import normalize_geography
from ..utils.config import Config
from ..utils.validation import GeographyError

logger = logging.getLogger(__name__)

BOUNDARY_URL = "https://www2.census.gov/geo/tiger/GENZ{year}/shp/cb_{year}_{scope}_{layer}_{resolution}.zip"

# 2010 files are named by summary level instead of layer
BOUNDARY_URL_2010 = "https://www2.census.gov/geo/tiger/GENZ2010/gz_2010_{scope}_{sumlev}_{suffix}_{resolution}.zip"

# API predicate -> (shapefile layer, 2010 summary level, national file?)
BOUNDARY_LAYERS = {
    "state": ("state", "040", True),
    "county": ("county", "050", True),
    "congressional district": ("cd", "500", True),
    "zip code tabulation area": ("zcta5", "860", True),
    "tract": ("tract", "140", False),
    "block group": ("bg", "150", False),
    "place": ("place", "160", False),
    "county subdivision": ("cousub", "060", False),
}

# First vintage with cb_ named files; 2010 boundaries serve 2010-2012
FIRST_CB_YEAR = 2013

# Native CRS of the cartographic boundary files (NAD83)
BOUNDARY_CRS = "EPSG:4269"


def boundary_url(geography: str, year: int, state: Optional[str] = None,
                 resolution: str = "500k") -> str:
    """
    Build the download URL of a cartographic boundary shapefile.

    Args:
        geography: Geography level (e.g. "county", "tract")
        year: Vintage of the boundaries
        state: 2-digit state FIPS code; required for per-state layers
        resolution: "500k", "5m" or "20m"

    Returns:
        URL of the zipped shapefile

    Raises:
        GeographyError: For levels without boundary files, for years before
            2010, or when a per-state layer is requested without a state
    """
    level = normalize_geography(geography)
    if level not in BOUNDARY_LAYERS:
        raise GeographyError(f"No cartographic boundary file available for geography '{geography}'")
    if year < 2010:
        raise GeographyError(f"Cartographic boundary files start with the 2010 vintage, not {year}")

    layer, sumlev, national = BOUNDARY_LAYERS[level]
    if national:
        scope = "us"
    elif state is None:
        raise GeographyError(f"Geometry for geography '{geography}' requires a state")
    else:
        scope = state

    if year < FIRST_CB_YEAR:
        # the 111th Congress districts are the only 2010 cd file
        suffix = "11" if layer == "cd" else "00"
        return BOUNDARY_URL_2010.format(scope=scope, sumlev=sumlev, suffix=suffix, resolution=resolution)

    if layer == "zcta5":
        layer = "zcta520" if year >= 2020 else "zcta510"
    if layer == "cd":
        # congressional district files are named after the Congress they cover
        congress = 118 if year >= 2022 else 116
        layer = f"cd{congress}"

    return BOUNDARY_URL.format(year=year, scope=scope, layer=layer, resolution=resolution)


def _first_column(gdf, names) -> Optional[str]:
    # cb_ files use STATEFP/COUNTYFP, 2010 files STATE/COUNTY
    return next((c for c in names if c in gdf.columns), None)


def fetch_boundaries(geography: str, year: int, state: Optional[str] = None,
                     county: Optional[List[str]] = None) -> gpd.GeoDataFrame:
    """
    Download boundaries and keep the requested state and counties.

    Returns:
        GeoDataFrame with a string GEOID column plus the shapefile's own attributes
    """
    url = boundary_url(geography, year, state)
    logger.info(f"Downloading boundaries from {url}")

    try:
        response = requests.get(url, timeout=Config().get('census.timeout', 60))
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error(f"Boundary download failed: {str(e)}")
        raise

    gdf = gpd.read_file(BytesIO(response.content))
    if gdf.empty:
        return gdf

    if "GEOID" not in gdf.columns and "GEO_ID" in gdf.columns:
        # 2010 files: "0500000US50001" -> "50001"
        gdf = gdf.rename(columns={"GEO_ID": "GEOID"})
        gdf["GEOID"] = gdf["GEOID"].astype(str).str.split("US").str[-1]
    elif "GEOID" not in gdf.columns:
        # ZCTA files name the column GEOID20/GEOID10
        candidates = [c for c in gdf.columns if c.startswith("GEOID")]
        if not candidates:
            raise GeographyError(f"Boundary file {url} has no GEOID column")
        gdf = gdf.rename(columns={candidates[0]: "GEOID"})
    gdf["GEOID"] = gdf["GEOID"].astype(str)

    state_col = _first_column(gdf, ("STATEFP", "STATE"))
    county_col = _first_column(gdf, ("COUNTYFP", "COUNTY"))
    if state is not None and state_col:
        gdf = gdf[gdf[state_col] == state]
    if county and county_col:
        gdf = gdf[gdf[county_col].isin(county)]

    if gdf.crs is None:
        gdf = gdf.set_crs(BOUNDARY_CRS)

    return gdf.reset_index(drop=True)


def attach_geometry(df: pd.DataFrame, geography: str, year: int,
                    state: Optional[List[str]] = None,
                    county: Optional[List[str]] = None,
                    keep_geo_vars: bool = False) -> gpd.GeoDataFrame:
    """
    Join boundaries onto a data frame by GEOID.

    Args:
        df: Data with a GEOID column (tidy or wide)
        geography: Geography level of `df`
        year: Boundary vintage
        state: 2-digit state FIPS codes the data covers
        county: 3-digit county FIPS codes the data covers
        keep_geo_vars: Keep the shapefile's attribute columns (ALAND, AWATER, ...)

    Returns:
        GeoDataFrame with one row per row of `df` that has a boundary
    """
    level = normalize_geography(geography)
    _, _, national = BOUNDARY_LAYERS.get(level, (None, None, True))

    if national:
        boundaries = fetch_boundaries(geography, year, state[0] if state and len(state) == 1 else None, county)
        state_col = _first_column(boundaries, ("STATEFP", "STATE"))
        if state and len(state) > 1 and state_col:
            boundaries = boundaries[boundaries[state_col].isin(state)]
    else:
        if not state:
            raise GeographyError(f"Geometry for geography '{geography}' requires a state")
        boundaries = pd.concat(
            [fetch_boundaries(geography, year, st, county) for st in state],
            ignore_index=True,
        )
        boundaries = gpd.GeoDataFrame(boundaries, geometry="geometry", crs=BOUNDARY_CRS)

    if keep_geo_vars:
        drop = [c for c in boundaries.columns if c in df.columns and c != "GEOID"]
        boundaries = boundaries.drop(columns=drop)
    else:
        boundaries = boundaries[["GEOID", "geometry"]]

    merged = boundaries.merge(df, on="GEOID", how="inner")
    missing = set(df["GEOID"]) - set(merged["GEOID"])
    if missing:
        logger.warning(f"{len(missing)} GEOIDs had no matching boundary")

    logger.info(f"Attached geometry to {len(merged)} rows")
    return merged
