"""
Shared, cross-cutting code for the API.

`core/` holds the small building blocks every feature uses: the database
handle, settings, logging, error envelopes. Feature-specific SQL and logic
live in the feature packages (`catalog/`, `ingestion/`, `admin/`).
"""
