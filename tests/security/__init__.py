"""
Security test package for the Task API.
"""
