"""Losses, schedules, metrics and training loops."""
