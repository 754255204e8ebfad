"""
KenyaEMR Service API.

Named-parameter SQL query execution, sequential patient identifier
generation and facility setup, served over FastAPI.
"""
__version__ = "1.0.0"
