"""
Candidate-set providers.

A provider returns the full set of listings for one source type (vacancies or
availability). Today we ship an in-memory provider fed from YAML; the REST-backed
providers of the web client implement the same protocol.
"""
