"""Pydantic models for queries, envelopes and write payloads"""
