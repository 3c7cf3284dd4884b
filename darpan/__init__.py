"""Backend package: configuration, DB models, text extraction, pipelines and the API.

Uploaded study-abroad documents flow through parsing, normalization,
regex extraction and AI analysis before being persisted.
"""
