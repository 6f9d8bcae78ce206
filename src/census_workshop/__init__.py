"""
Census workshop toolkit.

This package backs a hands-on workshop on US Census Bureau data: it queries
the decennial Census and the American Community Survey through the Census
Data API, browses variable dictionaries, reshapes results, attaches
cartographic boundaries and draws the plots and maps used in the lessons.
"""

from .census import get_acs, get_decennial, load_variables

__version__ = "0.1.0"
__all__ = ['get_acs', 'get_decennial', 'load_variables']
