"""Server configuration and FastAPI application factory"""
