"""Reconcile declared S3 buckets against an AWS account."""

__version__ = "0.1.0"
