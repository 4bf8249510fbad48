"""Registry Guardian — REST routers."""
