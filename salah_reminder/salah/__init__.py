"""Prayer-time sources, schedule normalization and the reminder scheduler."""
