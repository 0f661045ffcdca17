"""Submission service: batching and IndexNow HTTPS submission."""

from submitter.http import batch_urls, classify_response, submit_urls, validate_submission

__all__ = ["batch_urls", "classify_response", "submit_urls", "validate_submission"]
