from .engine import GeoSearchEngine
from .types import Coordinate, RankedResult, SearchFilter

__all__ = ['GeoSearchEngine', 'Coordinate', 'RankedResult', 'SearchFilter']
