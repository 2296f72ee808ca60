"""Sales CRM backend: contacts, deal pipeline, tasks and dashboard metrics."""

__version__ = "0.1.0"
