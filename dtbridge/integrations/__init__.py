"""Web framework adapters (import the submodule for the framework in use)."""
