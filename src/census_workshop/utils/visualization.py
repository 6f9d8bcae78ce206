"""
Visualization module for the Census workshop lessons.
"""

import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
from pathlib import Path
import logging
import re
from typing import Optional, Dict, Any
from .config import Config

logger = logging.getLogger(__name__)

class Visualization:
    """Class for generating the workshop's plots and maps."""

    def __init__(self, output_dir: Path, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the visualization class.

        Args:
            output_dir: Directory to save visualizations
            config: Optional configuration dictionary. If not provided, uses default config.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(exist_ok=True, parents=True)

        self.config = config or Config().get('visualization', {})
        self._configure_matplotlib()

    def _configure_matplotlib(self):
        """Configure matplotlib based on settings."""
        plt.rcParams.update({
            'axes.titlesize': 14,
            'axes.labelsize': 12,
            'xtick.labelsize': 10,
            'ytick.labelsize': 10,
            'legend.fontsize': 10,
            'axes.spines.top': False,
            'axes.spines.right': False,
        })
        sns.set_style(self.config.get('seaborn_style', 'whitegrid'), {
            'grid.linestyle': ':',
            'grid.alpha': 0.3,
        })

    def _figure_size(self, name: str, default):
        return tuple(self.config.get('figure_sizes', {}).get(name, default))

    def _save(self, fig, filename: str) -> Path:
        output_path = self.output_dir / filename
        fig.savefig(output_path, dpi=self.config.get('dpi', 300), bbox_inches='tight')
        plt.close(fig)
        logger.info(f"Saved plot to {output_path}")
        return output_path

    @staticmethod
    def _slug(title: str) -> str:
        return re.sub(r'[^a-z0-9]+', '_', title.lower()).strip('_') or 'plot'

    def estimate_dotplot(self, df: pd.DataFrame, value: str = 'estimate', moe: Optional[str] = 'moe',
                         label: str = 'NAME', title: str = 'ACS estimates') -> Path:
        """
        Create and save a dot plot of estimates with margin-of-error bars.

        Args:
            df: Data with one row per geography
            value: Column holding the estimate
            moe: Column holding the margin of error, or None for no error bars
            label: Column used for the y-axis labels
            title: Title for the plot

        Returns:
            Path to saved plot
        """
        data = df.sort_values(value)
        # "Travis County, Texas" -> "Travis County"
        labels = data[label].astype(str).str.split(',').str[0]

        fig, ax = plt.subplots(figsize=self._figure_size('dotplot', (10, 12)))
        if moe is not None and moe in data.columns:
            ax.errorbar(data[value], labels, xerr=data[moe], fmt='none', ecolor='gray', alpha=0.6)
        ax.scatter(data[value], labels, color='navy', s=30, zorder=3)
        ax.set_title(title)
        ax.set_xlabel(value)
        ax.set_ylabel('')

        return self._save(fig, f'{self._slug(title)}_dotplot.png')

    def comparison_barplot(self, df: pd.DataFrame, x: str, y: str, hue: Optional[str] = None,
                           title: str = 'Decennial Census counts') -> Path:
        """Create and save a bar chart comparing values across geographies."""
        fig, ax = plt.subplots(figsize=self._figure_size('barplot', (12, 8)))
        sns.barplot(data=df, x=x, y=y, hue=hue, ax=ax)
        ax.set_title(title)
        ax.tick_params(axis='x', rotation=90)

        return self._save(fig, f'{self._slug(title)}_barplot.png')

    def choropleth(self, gdf, column: str, title: str = 'Choropleth map') -> Path:
        """
        Create and save a choropleth map.

        Args:
            gdf: GeoDataFrame returned with geometry=True
            column: Column to shade the polygons by
            title: Title for the map

        Returns:
            Path to saved map
        """
        if 'geometry' not in gdf.columns:
            raise ValueError("choropleth requires a GeoDataFrame; fetch the data with geometry=True")

        fig, ax = plt.subplots(figsize=self._figure_size('choropleth', (10, 10)))
        gdf.plot(column=column, cmap='viridis', legend=True, ax=ax,
                 missing_kwds={'color': 'lightgrey'})
        ax.set_title(title)
        ax.set_axis_off()

        return self._save(fig, f'{self._slug(title)}_map.png')
