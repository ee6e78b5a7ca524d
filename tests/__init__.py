"""
Tests for the CER smart meter pipeline.

Test modules:
- test_transformers.py: Tests for Polars transformation functions
- test_sources.py: Tests for the flat-file readers
- test_loaders.py: Tests for DuckDB loader operations
- test_pipeline.py: Tests for get_cer, its report and cache, and the ETL run
- integration/: Checks against a real CER data folder (skipped without one)
- conftest.py: Pytest fixtures and configuration
"""
