"""Models, constants, errors and configuration shared by selector and ingest."""
