"""Host framework bindings for modelstates."""
