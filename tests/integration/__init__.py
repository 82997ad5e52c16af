"""
Integration Tests - Components Composed at the Call Site.

Test Files:
    - test_scroll_pipeline.py: Scroll, window, cache and scheduling together
"""
