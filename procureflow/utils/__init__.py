"""Shared utilities for ProcureFlow."""
