"""Shared utilities for outbound calls (HTTP client with retry)."""
