"""Closures domain - closed-day revenue reconciliation"""
