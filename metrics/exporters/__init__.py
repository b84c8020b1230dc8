"""Reporting of drained telemetry"""
