"""Hazard Monitor - sensor ingestion, hazard alerts and dashboard statistics.

Layout follows functional core / imperative shell:
- hazard_monitor.core: pure domain logic (rules, geo, statistics, validation)
- hazard_monitor.shell: storage adapters and configuration loading
- top-level modules wire the two together (ingestion, statistics, API)
"""

__version__ = "1.0.0"
