"""
Test suite for the Task API.

This package contains:
- unit/: Component tests (sanitizer, validators, normalizer, store, startup)
- integration/: HTTP tests through the Flask test client
- security/: Adversarial input tests
"""
