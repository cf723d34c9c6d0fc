"""
Shared configuration and exceptions
"""
