"""
docbuddy - adaptive metric discovery and query construction for APM telemetry.

Finds which metric names actually carry data for a service, classifies them,
builds span/metric queries and normalizes the results into one model.
"""

__version__ = "0.1.0"
