"""Core configuration, errors and validation"""
