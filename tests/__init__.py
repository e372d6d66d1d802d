"""
Tests Package

This module contains all tests for the Tadbeer helpdesk backend.
"""
