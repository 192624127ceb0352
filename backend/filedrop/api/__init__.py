"""HTTP layer: root-level site routes and the versioned REST API."""
