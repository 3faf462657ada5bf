"""HTTP API: request schemas, shared dependencies and route factories"""
