"""
Services package for the block flow compiler.
"""
