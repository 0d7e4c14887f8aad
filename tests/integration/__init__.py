"""
API test package for the Task API.

This package contains tests for the REST API endpoints.
Tests use the Flask test client and demonstrate:
- CRUD operation testing
- Input validation testing
- Error handling testing
"""
