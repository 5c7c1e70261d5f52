"""Patients bounded context.

Patient records are the reference tenant-scoped entity: every read and
write goes through a ``TenantScopedRepository`` built for the clinic the
request's tenant guard resolved.
"""
