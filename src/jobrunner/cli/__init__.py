"""Command-line launcher for the job runtime (``jobrunner``)."""
