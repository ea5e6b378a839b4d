# Database access: engine/session factory and ORM models
