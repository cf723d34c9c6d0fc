"""
Clients for external services
"""
