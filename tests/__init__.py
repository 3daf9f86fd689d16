"""Test suite for the document search engine."""
