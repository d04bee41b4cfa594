"""
Configuration loading and validation.

Provides strongly typed settings objects for exchange credentials, endpoints
and trading mode, validated when they are loaded.
"""
