"""Outputs subpackage: charts built from the aggregated sweep tables."""
