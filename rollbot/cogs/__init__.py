"""Discord application command cogs."""
