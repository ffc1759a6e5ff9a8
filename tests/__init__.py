"""Tests for pykasacloud."""
