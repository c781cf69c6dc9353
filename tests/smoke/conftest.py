"""Smoke test configuration.

Smoke tests verify imports, core types, and pure logic.
No I/O, no video codecs, no encoders.
Target: <5s total, <100ms each.
"""
