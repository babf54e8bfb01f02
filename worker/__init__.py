"""Background workers for insight reports."""
