"""
Core Census Bureau Data API client implementation.
"""
import logging
import pandas as pd
import requests
from typing import Dict, Any, List, Optional
from ...utils.config import Config, get_api_key
from ...utils.validation import CensusAPIError

logger = logging.getLogger(__name__)

class CensusClient:
    """Client for interacting with the Census Bureau Data API."""

    BASE_URL = "https://api.census.gov/data"

    # The API caps a request at 50 variables; NAME and the geography take the rest
    MAX_VARIABLES_PER_CALL = 48

    # Census dataset codes
    DATASETS = {
        "pl": "dec/pl",         # Decennial Redistricting Data (PL 94-171)
        "dhc": "dec/dhc",       # 2020 Demographic and Housing Characteristics
        "dp": "dec/dp",         # 2020 Demographic Profile
        "sf1": "dec/sf1",       # 2000/2010 Summary File 1
        "sf2": "dec/sf2",       # 2000/2010 Summary File 2
        "acs1": "acs/acs1",     # ACS 1-Year Estimates
        "acs3": "acs/acs3",     # ACS 3-Year Estimates (2007-2013)
        "acs5": "acs/acs5",     # ACS 5-Year Estimates
        "acsse": "acs/acsse",   # ACS 1-Year Supplemental Estimates
    }

    # Table prefixes that live on a separate ACS endpoint
    TABLE_ENDPOINTS = {
        "S": "subject",
        "DP": "profile",
        "CP": "cprofile",
    }

    _warned_missing_key = False

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        """Initialize the Census client with an API key from the environment or config."""
        self.api_key = api_key or get_api_key()
        self.timeout = timeout or Config().get('census.timeout', 60)
        if not self.api_key and not CensusClient._warned_missing_key:
            logger.warning(
                "No Census API key found. Set CENSUS_API_KEY or census.api_key in the config; "
                "keyless requests are limited to 500 per day."
            )
            CensusClient._warned_missing_key = True

    @classmethod
    def dataset_path(cls, year: int, dataset: str, table: Optional[str] = None) -> str:
        """
        Build the URL path of a dataset.

        Args:
            year: Data vintage
            dataset: Short dataset name (e.g. "acs5", "pl") or an explicit path ("acs/acs5/subject")
            table: Optional table ID, used to pick the subject/profile ACS endpoints

        Returns:
            Path relative to BASE_URL, e.g. "2022/acs/acs5/subject"
        """
        if dataset in cls.DATASETS:
            path = cls.DATASETS[dataset]
        elif dataset.startswith(("acs/", "dec/")):
            path = dataset
        elif dataset.split("/")[0] in cls.DATASETS:
            head, _, tail = dataset.partition("/")
            path = f"{cls.DATASETS[head]}/{tail}"
        else:
            path = dataset

        if table and path.startswith("acs/") and path.count("/") == 1:
            for prefix in ("DP", "CP", "S"):
                if table.upper().startswith(prefix):
                    path = f"{path}/{cls.TABLE_ENDPOINTS[prefix]}"
                    break

        return f"{year}/{path}"

    def _make_request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Make a request to the Census API and return the decoded JSON body."""
        params = dict(params or {})
        if self.api_key:
            params["key"] = self.api_key

        url = f"{self.BASE_URL}/{path}"
        logger.debug(f"Census API request: {url} {dict((k, v) for k, v in params.items() if k != 'key')}")

        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Census API request failed: {str(e)}")
            raise

        if response.status_code == 204:
            raise CensusAPIError("The query returned no data", status_code=204, url=url)
        if response.status_code >= 400:
            message = " ".join(response.text.split())[:500] or response.reason
            logger.error(f"Census API error {response.status_code}: {message}")
            raise CensusAPIError(message, status_code=response.status_code, url=url)

        try:
            return response.json()
        except ValueError:
            # Invalid keys are answered with an HTML page
            logger.error(f"Census API returned a non-JSON response from {url}")
            raise CensusAPIError(
                "Response was not valid JSON; check that your API key is valid",
                status_code=response.status_code,
                url=url,
            )

    def _to_frame(self, payload: Any) -> pd.DataFrame:
        """Convert the API's list-of-rows payload into a DataFrame."""
        if not isinstance(payload, list) or not payload:
            raise CensusAPIError("Unexpected response format from the Census API")
        header, rows = payload[0], payload[1:]
        return pd.DataFrame(rows, columns=header)

    def get_data(self, year: int, dataset: str, variables: List[str],
                 geography: Dict[str, str], table: Optional[str] = None) -> pd.DataFrame:
        """
        Get data for a set of variables, or a whole table, at one geography.

        Args:
            year: Data vintage
            dataset: Short dataset name or path (see DATASETS)
            variables: Variable codes to request; ignored when `table` is given
            geography: `for`/`in` parameters from build_geography_clause
            table: Optional table ID requested with the API's group() syntax

        Returns:
            DataFrame with NAME, the requested variables and the geography columns,
            all as strings exactly as returned by the API
        """
        path = self.dataset_path(year, dataset, table)

        if table:
            params = {"get": f"group({table.upper()})", **geography}
            return self._to_frame(self._make_request(path, params))

        variables = list(dict.fromkeys(variables))
        chunks = [variables[i:i + self.MAX_VARIABLES_PER_CALL]
                  for i in range(0, len(variables), self.MAX_VARIABLES_PER_CALL)] or [[]]

        merged = None
        for chunk in chunks:
            params = {"get": ",".join(["NAME"] + chunk), **geography}
            df = self._to_frame(self._make_request(path, params))
            if merged is None:
                merged = df
            else:
                keys = [c for c in merged.columns if c not in variables]
                merged = pd.merge(merged, df, on=keys, how="outer")

        logger.info(f"Fetched {len(merged)} rows from {path}")
        return merged

    def get_variables(self, year: int, dataset: str) -> Dict[str, Dict[str, Any]]:
        """
        Get the variable dictionary of a dataset.

        Returns:
            Mapping of variable code to its metadata (label, concept, predicateType, group, ...)
        """
        path = f"{self.dataset_path(year, dataset)}/variables.json"
        payload = self._make_request(path)
        try:
            return payload["variables"]
        except (KeyError, TypeError):
            logger.error(f"Unexpected variables.json format from {path}")
            raise CensusAPIError(f"Unexpected variables.json format from {path}")
