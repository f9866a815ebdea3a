"""Appointments domain - bookings that draw on and return centralized sessions"""
