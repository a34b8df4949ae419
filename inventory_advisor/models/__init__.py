"""
Domain models: inventory snapshot records, recommendations and reports.

All models are frozen pydantic v2 models.
"""
