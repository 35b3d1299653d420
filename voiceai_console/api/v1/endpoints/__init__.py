"""Console endpoint routers"""
