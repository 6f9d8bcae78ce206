"""
Census Bureau package.
This module contains all functionality related to fetching and shaping data from the Census Bureau Data API
and attaching TIGER/Line cartographic boundaries.
"""

from .core.census_client import CensusClient
from .services.data_fetcher import DataFetcher, get_acs, get_decennial, load_variables
from .services.reshape import add_percent, to_tidy, to_wide
from .moe import moe_product, moe_prop, moe_ratio, moe_sum, significance

__all__ = [
    'CensusClient',
    'DataFetcher',
    'get_acs',
    'get_decennial',
    'load_variables',
    'add_percent',
    'to_tidy',
    'to_wide',
    'moe_product',
    'moe_prop',
    'moe_ratio',
    'moe_sum',
    'significance',
]
