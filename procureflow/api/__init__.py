"""FastAPI surface for the ProcureFlow agent."""
