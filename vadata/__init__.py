"""Voice-activity timelines from recorded calls."""
