"""Kusto ORM generator: C# models and DbContext from Kusto database schemas."""

__version__ = "0.1.0"
