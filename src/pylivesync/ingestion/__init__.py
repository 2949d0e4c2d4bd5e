"""Ingestion layer.

Translates subscription frames into typed values for the state store.
"""
