"""
Unit test package for the Task API.
"""
