"""Audience segmentation and customer directory engine for the CRM dashboard."""

__version__ = "1.0.0"
