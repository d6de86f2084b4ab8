"""
Core localization pipeline: tree walking, extraction, HTML-preserving
translation, batching, structural updates and per-locale orchestration.
"""
