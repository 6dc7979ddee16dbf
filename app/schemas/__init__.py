"""
Pydantic schemas for RPC requests and responses
"""
