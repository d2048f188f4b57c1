"""Infrastructure adapters: database, cache and outbound HTTP."""
