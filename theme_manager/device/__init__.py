"""Device-side access: filesystem layout, system discovery, path rules and
the accent/LED settings files."""
