"""
Shared Kernel

Types and exceptions used across every layer.
"""
