"""Infrastructure layer — resource and registry file I/O, staged writes.

File reads go through here; parsing lives in the domain layer.
The service layer bridges between domain models and infrastructure.
"""
