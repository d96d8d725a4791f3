"""HTTP routers and request dependencies."""
