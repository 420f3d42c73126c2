"""SQL builders for the rate queries.

Submodules render a validated ``RateRequest`` into a BigQuery Standard SQL
string yielding ``title`` and ``rate`` columns.
"""
