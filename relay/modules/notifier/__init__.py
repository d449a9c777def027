"""Change-feed driven notifications: classification, scheduling, roles."""
