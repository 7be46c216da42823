"""Stat-check assistant bot for tabletop role-play groups."""
