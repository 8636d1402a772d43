"""Proxy selection and landing-page request filtering for retail browsing sessions."""

__version__ = "1.0.0"
