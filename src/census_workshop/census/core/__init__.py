"""
Core HTTP access to the Census Bureau Data API.
"""

from .census_client import CensusClient

__all__ = ['CensusClient']
