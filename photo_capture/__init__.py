"""Single-shot camera capture client: countdown, one still, one upload."""
