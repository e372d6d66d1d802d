"""
Backend Scripts Module

Available scripts:
    - seed_data.py: Creates the bootstrap admin and a sample department

Usage:
    python -m scripts.seed_data
"""
