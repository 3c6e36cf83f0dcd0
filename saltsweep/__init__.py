"""
Road-salt application sweep.

Full-factorial enumeration of candidate salt-application rates across six
land-use categories, evaluated for each watershed and reduced to
distributional summaries and median-based rankings.

Pipeline: rate_grid -> scenario -> aggregate -> summary -> outputs.
"""

__version__ = "0.1.0"
