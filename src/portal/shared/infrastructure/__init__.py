"""
Infrastructure Layer
=====================

Low-level technical concerns shared by all modules:
- Structured JSON logging
- Latency measurement
"""
