"""Multi-tenant wedding site backend."""
