"""Multi-tenant student, course and enrollment records service."""
