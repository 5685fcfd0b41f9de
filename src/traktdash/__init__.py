"""Personal Trakt statistics dashboard."""
