import unittest
from unittest.mock import patch, MagicMock

import geopandas as gpd
import pandas as pd
from shapely.geometry import box

from census_workshop.census.geometry import attach_geometry, boundary_url, fetch_boundaries
from census_workshop.utils.validation import GeographyError


def county_boundaries():
    return gpd.GeoDataFrame(
        {
            "GEOID": ["50001", "50003", "56001"],
            "STATEFP": ["50", "50", "56"],
            "COUNTYFP": ["001", "003", "001"],
            "ALAND": [100, 200, 300],
        },
        geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1), box(5, 5, 6, 6)],
        crs="EPSG:4269",
    )


class TestBoundaryUrl(unittest.TestCase):
    """
    Test cases for cartographic boundary URLs.
    """

    def test_national_layers(self):
        self.assertEqual(
            boundary_url("county", 2020),
            "https://www2.census.gov/geo/tiger/GENZ2020/shp/cb_2020_us_county_500k.zip",
        )
        self.assertEqual(
            boundary_url("zcta", 2020),
            "https://www2.census.gov/geo/tiger/GENZ2020/shp/cb_2020_us_zcta520_500k.zip",
        )
        self.assertTrue(boundary_url("zcta", 2019).endswith("cb_2019_us_zcta510_500k.zip"))

    def test_state_layers(self):
        self.assertEqual(
            boundary_url("tract", 2022, "48"),
            "https://www2.census.gov/geo/tiger/GENZ2022/shp/cb_2022_48_tract_500k.zip",
        )
        self.assertTrue(boundary_url("block group", 2022, "48").endswith("cb_2022_48_bg_500k.zip"))

    def test_2010_files(self):
        self.assertEqual(
            boundary_url("county", 2010),
            "https://www2.census.gov/geo/tiger/GENZ2010/gz_2010_us_050_00_500k.zip",
        )
        self.assertEqual(
            boundary_url("tract", 2010, "48"),
            "https://www2.census.gov/geo/tiger/GENZ2010/gz_2010_48_140_00_500k.zip",
        )
        self.assertTrue(boundary_url("block group", 2012, "48").endswith("gz_2010_48_150_00_500k.zip"))
        self.assertTrue(boundary_url("congressional district", 2010).endswith("gz_2010_us_500_11_500k.zip"))

    def test_years_without_cartographic_files(self):
        with self.assertRaises(GeographyError):
            boundary_url("tract", 2000, "48")
        with self.assertRaises(GeographyError):
            boundary_url("county", 2009)

    def test_errors(self):
        with self.assertRaises(GeographyError):
            boundary_url("tract", 2022)
        with self.assertRaises(GeographyError):
            boundary_url("block", 2020, "48")


class TestFetchBoundaries(unittest.TestCase):
    """
    Test cases for boundary downloads.
    """

    @patch('census_workshop.census.geometry.Config')
    @patch('census_workshop.census.geometry.gpd.read_file')
    @patch('census_workshop.census.geometry.requests.get')
    def test_filters_state_and_county(self, mock_get, mock_read_file, mock_config):
        mock_config.return_value.get.return_value = 30
        mock_get.return_value = MagicMock(content=b"zip-bytes")
        mock_read_file.return_value = county_boundaries()

        result = fetch_boundaries("county", 2020, state="50", county=["003"])

        self.assertEqual(result["GEOID"].tolist(), ["50003"])
        self.assertEqual(mock_get.call_args[0][0],
                         "https://www2.census.gov/geo/tiger/GENZ2020/shp/cb_2020_us_county_500k.zip")

    @patch('census_workshop.census.geometry.Config')
    @patch('census_workshop.census.geometry.gpd.read_file')
    @patch('census_workshop.census.geometry.requests.get')
    def test_renames_zcta_geoid(self, mock_get, mock_read_file, mock_config):
        mock_config.return_value.get.return_value = 30
        mock_get.return_value = MagicMock(content=b"zip-bytes")
        mock_read_file.return_value = gpd.GeoDataFrame(
            {"GEOID20": ["05401"]}, geometry=[box(0, 0, 1, 1)], crs="EPSG:4269"
        )

        result = fetch_boundaries("zcta", 2020)

        self.assertIn("GEOID", result.columns)
        self.assertEqual(result.loc[0, "GEOID"], "05401")

    @patch('census_workshop.census.geometry.Config')
    @patch('census_workshop.census.geometry.gpd.read_file')
    @patch('census_workshop.census.geometry.requests.get')
    def test_2010_geo_id(self, mock_get, mock_read_file, mock_config):
        mock_config.return_value.get.return_value = 30
        mock_get.return_value = MagicMock(content=b"zip-bytes")
        mock_read_file.return_value = gpd.GeoDataFrame(
            {
                "GEO_ID": ["0500000US50001", "0500000US50003", "0500000US56001"],
                "STATE": ["50", "50", "56"],
                "COUNTY": ["001", "003", "001"],
            },
            geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1), box(5, 5, 6, 6)],
            crs="EPSG:4269",
        )

        result = fetch_boundaries("county", 2010, state="50")

        self.assertEqual(result["GEOID"].tolist(), ["50001", "50003"])
        self.assertTrue(mock_get.call_args[0][0].endswith("gz_2010_us_050_00_500k.zip"))


class TestAttachGeometry(unittest.TestCase):
    """
    Test cases for joining boundaries onto data.
    """

    def setUp(self):
        self.data = pd.DataFrame({
            "GEOID": ["50001", "50003"],
            "NAME": ["Addison County, Vermont", "Bennington County, Vermont"],
            "variable": ["P1_001N", "P1_001N"],
            "value": [37363, 37347],
        })

    @patch('census_workshop.census.geometry.fetch_boundaries')
    def test_attach(self, mock_fetch):
        mock_fetch.return_value = county_boundaries()

        result = attach_geometry(self.data, "county", 2020, state=["50"])

        self.assertIsInstance(result, gpd.GeoDataFrame)
        self.assertEqual(list(result.columns), ["GEOID", "geometry", "NAME", "variable", "value"])
        self.assertEqual(len(result), 2)
        mock_fetch.assert_called_once_with("county", 2020, "50", None)

    @patch('census_workshop.census.geometry.fetch_boundaries')
    def test_keep_geo_vars(self, mock_fetch):
        mock_fetch.return_value = county_boundaries()

        result = attach_geometry(self.data, "county", 2020, state=["50"], keep_geo_vars=True)

        self.assertIn("ALAND", result.columns)

    @patch('census_workshop.census.geometry.fetch_boundaries')
    def test_per_state_layers(self, mock_fetch):
        mock_fetch.side_effect = lambda geography, year, state, county: county_boundaries()[
            county_boundaries()["STATEFP"] == state
        ].reset_index(drop=True)

        result = attach_geometry(self.data, "tract", 2020, state=["50", "56"])

        self.assertEqual(mock_fetch.call_count, 2)
        self.assertIsInstance(result, gpd.GeoDataFrame)
        self.assertEqual(len(result), 2)

    def test_state_layer_requires_state(self):
        with self.assertRaises(GeographyError):
            attach_geometry(self.data, "tract", 2020)


if __name__ == '__main__':
    unittest.main()
