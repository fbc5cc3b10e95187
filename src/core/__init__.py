"""Core domain package for herald.

Core contains the data source lifecycle, acknowledgment tracking, active-set
processing and the service wiring without any storage, HTTP or TUI code,
keeping the notification logic portable.
"""
