"""Reports domain - revenue summaries and payment exports"""
