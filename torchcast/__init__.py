"""
Torchcast - AI news podcast and condensed feed automation

This package provides tools to:
1. Route generation tasks across several LLM providers with ordered fallback
2. Write, edit and chunk a daily podcast script with always-valid metadata
3. Rotate through news feeds, rewrite recent items and publish a condensed RSS feed
4. Publish the podcast episode feed from stored metadata
"""

__version__ = "0.1.0"
__author__ = "Torchcast Team"
