"""Tests for the academy app."""
