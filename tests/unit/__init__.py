"""
Unit tests for the s3functional helpers. No S3 endpoint needed.
"""
