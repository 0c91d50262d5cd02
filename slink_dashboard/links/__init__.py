"""Link identities, demo fixtures and the (domain, key) resolver."""
