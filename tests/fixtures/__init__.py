"""
Test Fixtures - Shared Test Configurations.

This package contains reusable test fixtures:
    - sample_config.yaml: Sample configuration for testing
    - config/profiles/low_memory.yaml: Profile overlay with smaller caches
"""
