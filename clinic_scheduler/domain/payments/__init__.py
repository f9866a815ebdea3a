"""Payments domain - payment recording, refunds and package queries"""
