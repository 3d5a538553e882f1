"""Venue price exchange: demand-driven pricing with live price broadcast."""
