"""
Unit Tests - Testing Individual Components in Isolation.

Time-dependent components run against a FakeClock (cache, monitor) or
short real delays on the event loop (debounce, throttle, batching).

Test Files:
    - test_cache_store.py: TTL, eviction, invalidation and stats
    - test_windowing_engine.py: List and grid window math
    - test_timers.py / test_update_batcher.py / test_chunking.py: Scheduling
    - test_performance_monitor.py: Sampling and statistics
    - test_resource_registry.py: Scoped teardown
    - test_config_loader.py: Configuration loading/validation
"""
