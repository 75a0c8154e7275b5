"""Normalization and aggregation core."""
