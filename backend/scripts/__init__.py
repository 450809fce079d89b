"""
Backend Scripts Module

This module contains utility scripts for database operations and maintenance.

Available scripts:
    - revoke_expired_tokens.py: Ensures indexes and revokes expired access tokens

Usage:
    python -m scripts.revoke_expired_tokens
"""
