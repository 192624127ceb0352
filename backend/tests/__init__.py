"""
Tests package for the filedrop backend.

This package contains test suites organized by type:
- unit/: Domain, application, API and task tests with in-memory backends
- integration/: Local filesystem, mocked S3 and full HTTP stack tests
- contracts/: Shared storage backend contract run against every backend
- property/: Hypothesis property-based tests
"""
