"""
simple-include Test Suite.

Tests for the include preprocessor including:
- Unit tests for individual components
- Integration tests for the CLI and watch sessions
"""
