"""Business logic over the query adapter."""
