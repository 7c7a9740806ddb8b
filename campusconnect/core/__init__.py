"""Core configuration, security and workflow modules."""
