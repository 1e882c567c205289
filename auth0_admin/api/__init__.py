"""HTTP blueprints for the /api/v1 REST surface."""
