"""Ops Console Processing Modules

This package contains the processing modules of the operations console
back-office tooling. Each module implements the ModuleProcessor interface
and owns one area of business logic.
"""
