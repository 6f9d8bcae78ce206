import tempfile
import unittest
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import geopandas as gpd
import pandas as pd
from shapely.geometry import box

from census_workshop.utils.visualization import Visualization

CONFIG = {
    "seaborn_style": "whitegrid",
    "dpi": 50,
    "figure_sizes": {"dotplot": [4, 4], "barplot": [4, 3], "choropleth": [4, 4]},
}


class TestVisualization(unittest.TestCase):
    """
    Test cases for the Visualization class.
    """

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.viz = Visualization(Path(self.tmp.name) / "plots", config=CONFIG)

    def tearDown(self):
        self.tmp.cleanup()

    def test_estimate_dotplot(self):
        df = pd.DataFrame({
            "NAME": ["Addison County, Vermont", "Bennington County, Vermont"],
            "estimate": [85870, 69282],
            "moe": [3311, 4048],
        })

        path = self.viz.estimate_dotplot(df, title="Median household income")

        self.assertTrue(path.exists())
        self.assertEqual(path.name, "median_household_income_dotplot.png")

    def test_comparison_barplot(self):
        df = pd.DataFrame({"NAME": ["Vermont", "Wyoming"], "value": [643077, 576851]})

        path = self.viz.comparison_barplot(df, x="NAME", y="value", title="Population 2020")

        self.assertTrue(path.exists())

    def test_choropleth(self):
        gdf = gpd.GeoDataFrame(
            {"GEOID": ["50001", "50003"], "estimate": [10.0, 20.0]},
            geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1)],
            crs="EPSG:4269",
        )

        path = self.viz.choropleth(gdf, "estimate", title="Test map")

        self.assertTrue(path.exists())
        self.assertEqual(path.name, "test_map_map.png")

    def test_choropleth_requires_geometry(self):
        with self.assertRaises(ValueError):
            self.viz.choropleth(pd.DataFrame({"estimate": [1.0]}), "estimate")


if __name__ == '__main__':
    unittest.main()
