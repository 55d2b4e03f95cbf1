"""
Bills DB - API Layer

This package defines the HTTP-facing functional API for:

    - dashboard statistics
    - knowledge-graph sources

Each module defines plain functions over the BillsDB façade that the
web layer binds to.
"""

from . import stats_api
from . import graph_api

from .stats_api import *
from .graph_api import *

__all__ = stats_api.__all__ + graph_api.__all__
