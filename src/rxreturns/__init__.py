"""Pharmacy returns optimization service."""
