"""Document pipelines: normalization, entity extraction, upload processing and search.

Each step is callable on its own so analyzers and tests can drive them
independently of the HTTP layer.
"""
