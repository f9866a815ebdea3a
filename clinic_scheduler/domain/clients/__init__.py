"""Clients domain - client intake and session balances"""
