"""Structural and fixture-level tournament validation"""
