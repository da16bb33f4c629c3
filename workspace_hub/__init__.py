"""
Workspace Hub

Multi-tenant workspace service. Each tenant is addressed by its own
subdomain; every request is authorized against the tenant directory and
the membership table before it reaches the project endpoints.
"""

__version__ = "1.0.0"
