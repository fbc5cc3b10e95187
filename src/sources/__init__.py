"""Concrete notification producers.

Each module builds one data source on top of ``core.data_source``; the app
layer decides which ones to register from config.json.
"""
