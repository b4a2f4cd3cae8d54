"""Distributor-matching engine: pure functions over an in-memory price catalog."""
