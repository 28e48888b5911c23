"""
Audio Selector

Search a local folder of audio files by name, pick one from a numbered
list to play back, and add new files to the folder by streaming them from
a direct link.

Repository Structure:
- selector/: Catalog search, interactive selection, playback dispatch and CLI
- ingest/: Streaming upload pipeline (fetch, sniff, commit)
- shared/: Shared models, constants, errors and configuration
- tests/: Unit and integration tests

License: MIT
"""
