"""Agent orchestration layer: models, intent resolution and confirmation gate."""
