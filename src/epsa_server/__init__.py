"""epsa_server — FastAPI REST API for the ePSA scoring SDK.

Exposes the validator and both scorers as a stateless HTTP API, together
with model reference data and admin endpoints for publishing, rolling back
and simulating calculator configurations.
"""
