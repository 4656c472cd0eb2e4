"""
sdkforge: regenerate SDKs from an API description without losing manual edits.
"""

__version__ = "0.1.0"
