"""Link persistence backends."""
