"""Print backends for orderprint."""
