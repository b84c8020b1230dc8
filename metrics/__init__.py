"""IAST metric definitions and verbosity levels"""
