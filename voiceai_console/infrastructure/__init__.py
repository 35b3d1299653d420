"""Infrastructure: backend API adapters and session storage"""
