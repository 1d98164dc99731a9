"""
SaneRSS Ingestion Module
========================

RSS feed fetching and item normalization.

This module handles:
- HTTP fetching and feedparser parsing
- Item identity for deduplication
- Content excerpt extraction for AI prompts
"""
