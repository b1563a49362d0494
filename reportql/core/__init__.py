"""Core compilation pipeline: schema registry, validation, join resolution, SQL rendering."""
