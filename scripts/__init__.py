"""Operational scripts: audit trail and provisioning CLI."""
