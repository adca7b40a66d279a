"""Operator command line interface for Mnemo."""
