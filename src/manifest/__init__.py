"""Manifest rewriting for feature unification."""
