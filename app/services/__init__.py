"""Reservation engine services"""
