"""Connectors for signed REST APIs"""
