import unittest
from unittest.mock import MagicMock

import pandas as pd

from census_workshop.census.geography import (
    build_geography_clause,
    lookup_state,
    make_geoid,
    normalize_county,
    normalize_geography,
    resolve_county,
    state_abbreviation,
)
from census_workshop.utils.validation import GeographyError


class TestStateLookup(unittest.TestCase):
    """
    Test cases for state FIPS resolution.
    """

    def test_abbreviation_name_and_code(self):
        self.assertEqual(lookup_state("TX"), "48")
        self.assertEqual(lookup_state("tx"), "48")
        self.assertEqual(lookup_state("Texas"), "48")
        self.assertEqual(lookup_state("district of columbia"), "11")
        self.assertEqual(lookup_state(6), "06")
        self.assertEqual(lookup_state("06"), "06")
        self.assertEqual(lookup_state("PR"), "72")

    def test_invalid_state(self):
        for value in ("ZZ", "Atlantis", "03", 99):
            with self.assertRaises(GeographyError):
                lookup_state(value)

    def test_state_abbreviation(self):
        self.assertEqual(state_abbreviation("50"), "VT")
        with self.assertRaises(GeographyError):
            state_abbreviation("00")


class TestGeographyClause(unittest.TestCase):
    """
    Test cases for the for/in predicates.
    """

    def test_aliases(self):
        self.assertEqual(normalize_geography("ZCTA"), "zip code tabulation area")
        self.assertEqual(normalize_geography("Block  Group"), "block group")
        with self.assertRaises(GeographyError):
            normalize_geography("galaxy")

    def test_national_levels(self):
        self.assertEqual(build_geography_clause("us"), {"for": "us:*"})
        self.assertEqual(build_geography_clause("state"), {"for": "state:*"})
        self.assertEqual(build_geography_clause("state", "50"), {"for": "state:50"})
        self.assertEqual(build_geography_clause("zcta", "50"), {"for": "zip code tabulation area:*"})

    def test_county(self):
        self.assertEqual(build_geography_clause("county"), {"for": "county:*"})
        self.assertEqual(build_geography_clause("county", "48"), {"for": "county:*", "in": "state:48"})
        self.assertEqual(build_geography_clause("county", "48", ["453", "491"]),
                         {"for": "county:453,491", "in": "state:48"})

    def test_tract_and_block_group(self):
        self.assertEqual(build_geography_clause("tract", "48"),
                         {"for": "tract:*", "in": "state:48 county:*"})
        self.assertEqual(build_geography_clause("block group", "48", ["453"]),
                         {"for": "block group:*", "in": "state:48 county:453"})

    def test_county_subdivision_in_county(self):
        self.assertEqual(build_geography_clause("county subdivision", "50", ["007"]),
                         {"for": "county subdivision:*", "in": "state:50 county:007"})

    def test_requirements(self):
        with self.assertRaises(GeographyError):
            build_geography_clause("tract")
        with self.assertRaises(GeographyError):
            build_geography_clause("block", "48")
        with self.assertRaises(GeographyError):
            build_geography_clause("county", None, ["453"])
        with self.assertRaises(GeographyError):
            build_geography_clause("place", "48", ["453"])


class TestGeoid(unittest.TestCase):
    """
    Test cases for GEOID construction.
    """

    def test_concatenates_geography_columns(self):
        df = pd.DataFrame({"state": ["48", "48"], "county": ["453", "029"], "tract": ["000101", "110100"]})
        geoid = make_geoid(df, ["state", "county", "tract"])
        self.assertEqual(geoid.tolist(), ["48453000101", "48029110100"])

    def test_us(self):
        df = pd.DataFrame({"NAME": ["United States"], "us": ["1"]})
        self.assertEqual(make_geoid(df, ["us"]).tolist(), ["1"])

    def test_no_columns(self):
        with self.assertRaises(GeographyError):
            make_geoid(pd.DataFrame({"NAME": ["x"]}), [])


class TestCountyResolution(unittest.TestCase):
    """
    Test cases for county name lookups.
    """

    def setUp(self):
        self.client = MagicMock()
        self.client.get_data.return_value = pd.DataFrame({
            "NAME": ["Travis County, Texas", "Bexar County, Texas", "Orleans Parish, Louisiana"],
            "state": ["48", "48", "22"],
            "county": ["453", "029", "071"],
        })

    def test_normalize_county(self):
        self.assertEqual(normalize_county(1), "001")
        self.assertEqual(normalize_county("48453"), "453")
        self.assertEqual(normalize_county("Travis"), "Travis")

    def test_fips_passes_through(self):
        self.assertEqual(resolve_county(self.client, "48", 453, 2020, "pl"), "453")
        self.client.get_data.assert_not_called()

    def test_name_lookup(self):
        self.assertEqual(resolve_county(self.client, "48", "Travis", 2020, "pl"), "453")
        self.assertEqual(resolve_county(self.client, "48", "bexar county", 2020, "pl"), "029")
        self.assertEqual(resolve_county(self.client, "22", "Orleans", 2020, "pl"), "071")

        kwargs = self.client.get_data.call_args[1]
        self.assertEqual(kwargs["geography"], {"for": "county:*", "in": "state:22"})

    def test_unknown_name(self):
        with self.assertRaises(GeographyError):
            resolve_county(self.client, "48", "Gotham", 2020, "pl")


if __name__ == '__main__':
    unittest.main()
