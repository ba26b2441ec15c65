"""snapvault backend: retrieval API, image store and messaging runtime"""
