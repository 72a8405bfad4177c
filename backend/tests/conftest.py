"""Shared pytest setup."""

import logfire

# Keep spans local; tests never export telemetry
logfire.configure(send_to_logfire=False, console=False)
