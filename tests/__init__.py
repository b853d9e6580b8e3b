"""
Unit tests for driver_wrapper.

Tests run against in-memory fakes of Playwright's Page and ElementHandle,
so no browser is needed.
"""
