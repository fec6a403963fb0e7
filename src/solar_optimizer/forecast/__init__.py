"""Weather context and short-horizon power forecast."""
