"""
OpsIntel Test Suite

Unit tests for ingestion, schema validation, the analysis clients, the
session controller and the dashboard helpers.  Every call to a generative
service is mocked.
"""
