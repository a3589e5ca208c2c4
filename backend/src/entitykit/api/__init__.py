"""HTTP surface: app factory (entitykit.api.app), per-entity routes and error mapping."""
