"""Import tools for the conversation store."""
