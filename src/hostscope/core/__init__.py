"""
hostscope Core Module

Contains the diagnostic pipeline: collection with fallback, event
classification, scoring and report writing.
"""
