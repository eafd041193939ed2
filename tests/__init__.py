"""
Tests for Snake DQN
===================

Run all tests:
    pytest tests/

Skip the slower end-to-end runs:
    pytest tests/ -m "not slow"
"""
