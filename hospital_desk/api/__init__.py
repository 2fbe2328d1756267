"""HTTP layer: ORM tables, request/response models and dependencies."""
