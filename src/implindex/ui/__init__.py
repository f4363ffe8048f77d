"""User interfaces built on top of the implementor registry."""
