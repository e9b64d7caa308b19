"""Realty listing harvester."""
