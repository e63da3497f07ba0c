"""Addon manager CLI commands"""
