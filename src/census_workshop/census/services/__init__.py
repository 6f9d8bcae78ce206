"""
Census services module.
Contains the lesson-facing fetchers and reshaping helpers.
"""

from .data_fetcher import DataFetcher, get_acs, get_decennial, load_variables
from .reshape import add_percent, to_tidy, to_wide

__all__ = ['DataFetcher', 'get_acs', 'get_decennial', 'load_variables',
           'add_percent', 'to_tidy', 'to_wide']
