"""
Controllers package initialization
"""
