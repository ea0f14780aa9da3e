"""ProcureFlow CLI package."""
