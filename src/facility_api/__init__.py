"""Fitness facility search API."""
