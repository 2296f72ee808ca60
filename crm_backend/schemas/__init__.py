"""Request/response schemas for the CRM API."""
