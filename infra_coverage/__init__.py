"""
Infrastructure coverage analysis.

Estimates per-district telecom, internet, education and healthcare
coverage from tower and facility inventories.
"""
__version__ = "0.1.0"
