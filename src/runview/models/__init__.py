# Copyright (c) Syntropy Systems
"""Pydantic models for tracking server payloads."""
