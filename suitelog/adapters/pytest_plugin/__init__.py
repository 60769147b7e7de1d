"""pytest plugin adapter: pytest run hooks as a lifecycle event source."""
