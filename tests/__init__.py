"""
abilities test suite.

This package contains tests for the abilities package:
- Core types and exceptions
- Rules and the rule registry
- Ability registration, resolution and enforcement
- AuthorizationGuard request-scope tracking
- The authorize decorator
"""
