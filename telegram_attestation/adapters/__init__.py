"""Adapters for external systems: Telegram chat and the Obyte device hub / issuer."""
