"""Core Business Logic Module

This module provides the user, role and permission logic of the facade,
independent of the HTTP framework.

Module Structure:
    - auth0/                  : Low-level Auth0 Management API client
    - provisioning_service.py : Create user, assign roles, issue ticket, rollback
    - role_reconciler.py      : Diff-based permission/role reconciliation
    - directory_service.py    : CRUD operations behind /api/v1
    - transformer.py          : Auth0 ↔ REST DTO transformations
    - validators.py           : Request payload validation
    - context.py              : Service wiring shared by Flask and the CLI

Usage Pattern:
    These modules are NOT auto-imported so the CLI can use them without Flask.
"""
