"""Bearer-token authentication for tenant-scoped API callers."""
