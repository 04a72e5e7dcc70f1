"""Core configuration, database, security and error handling"""
