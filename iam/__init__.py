"""
IAM: an attribute-based access control policy engine with a small
FastAPI/MongoDB service around it.

The engine lives in `iam.abac` and has no I/O; everything else is the
service shell that stores policies and resolves principals.
"""

__version__ = "1.0.0"
