"""Service layer for memoboot.

Every service operation returns a ServiceResult.
"""
