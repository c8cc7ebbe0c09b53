"""
Interfaces - Entry points into DocuFlow.

- cli: Typer command-line tool
- api: FastAPI REST API
"""
