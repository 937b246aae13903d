"""
Real estate project manager backend.
"""
