"""
Functional test suite run against a live S3-compatible endpoint.

Tests are skipped when the endpoint configured with S3_ENDPOINT can't be
reached. Scenarios marked "full" only run with S3_TEST_MODE=full.
"""
