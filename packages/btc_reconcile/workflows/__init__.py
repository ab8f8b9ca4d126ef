"""Workflow orchestrators composing the rule engine into import flows."""

from .import_flow import ImportSession, start_import

__all__ = ["ImportSession", "start_import"]
